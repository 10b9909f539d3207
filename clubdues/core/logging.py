"""
logging.py

애플리케이션 로깅 설정 파일.

stdout 핸들러를 기본으로 두고, LOG_FILE이 지정되면
파일 핸들러를 함께 붙인다. 레벨은 settings.LOG_LEVEL을 따른다.

각 모듈은 logging.getLogger(__name__)으로 로거를 얻기만 하고,
핸들러 구성은 이 파일에서 한 번만 수행한다.

관련 파일:
- clubdues.core.config   : LOG_LEVEL / LOG_FILE
- clubdues.main          : 앱 시작 시 setup_logging() 호출

"""

import logging
import sys
from pathlib import Path

from clubdues.core.config import settings


LOG_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def get_log_level(level_name: str | None = None) -> int:
    level_str = (level_name or settings.LOG_LEVEL or "INFO").upper()
    return LOG_LEVEL_MAP.get(level_str, logging.INFO)


"""
루트 로거 구성

- 기존 핸들러를 제거한 뒤 다시 붙이므로 여러 번 호출해도 중복 출력 없음
- log_file 미지정 시 settings.LOG_FILE 사용 (둘 다 없으면 stdout만)

"""

def setup_logging(level_name: str | None = None, log_file: str | None = None) -> None:
    formatter = logging.Formatter(
        fmt="[%(asctime)s] %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    log_level = get_log_level(level_name)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(log_level)
    stdout_handler.setFormatter(formatter)
    root_logger.addHandler(stdout_handler)

    log_file = log_file or settings.LOG_FILE
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
