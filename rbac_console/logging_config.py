"""
RBAC 콘솔 구성 요소 공용 로깅 설정.

서버, DB 초기화 스크립트 등 진입점에서 한 번만 호출합니다.
라이브러리 모듈은 logging.getLogger(__name__)만 사용합니다.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(
    component_name: str,
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    format_string: Optional[str] = None
) -> logging.Logger:
    """
    구성 요소의 로깅을 설정합니다.

    Args:
        component_name: 로그 접두사에 들어갈 구성 요소 이름 (예: 'api', 'db-init').
        level: 로깅 레벨. 숫자 또는 'INFO' 같은 이름.
        log_file: 추가로 기록할 로그 파일 경로 (선택).
        format_string: 사용자 지정 포맷 문자열 (선택).

    Returns:
        component_name 이름의 로거.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    if format_string is None:
        format_string = f'[%(asctime)s] [{component_name.upper()}] %(levelname)s - %(message)s'

    logging.basicConfig(
        level=level,
        format=format_string,
        datefmt=DATE_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(logging.Formatter(format_string, datefmt=DATE_FORMAT))
        logging.getLogger().addHandler(file_handler)

    logger = logging.getLogger(component_name)
    logger.info(f"{component_name.upper()} logging initialized (level={logging.getLevelName(level)})")
    return logger
