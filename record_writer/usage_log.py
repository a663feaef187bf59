import logging
import os

import pymysql
import pymysql.cursors

logger = logging.getLogger(__name__)

INSERT_USAGE_SQL = """
INSERT INTO school_record_usage_logs
    (session_id, category, mode, estimated_tokens, success, error_message, created_at)
VALUES (%s, %s, %s, %s, %s, %s, NOW())
"""


def _connect():
    return pymysql.connect(
        host=os.getenv("DB_HOST", "localhost"),
        user=os.getenv("DB_USER", "root"),
        password=os.getenv("DB_PASSWORD", ""),
        database=os.getenv("DB_NAME", "school_records"),
        port=int(os.getenv("DB_PORT", "3306")),
        charset='utf8mb4',
        cursorclass=pymysql.cursors.DictCursor,
        connect_timeout=5,  # 연결 타임아웃 설정
    )


def log_usage(session_id, category, mode, estimated_tokens, success, error_message=None):
    """
    MariaDB에 사용 이력을 저장합니다.
    DB 오류는 요청 처리에 영향을 주지 않도록 로그만 남기고 넘어갑니다.
    """
    conn = None
    try:
        conn = _connect()
        with conn.cursor() as cursor:
            # error_message가 너무 길 경우를 대비해 잘라서 저장
            safe_error_msg = str(error_message)[:2000] if error_message else None
            cursor.execute(
                INSERT_USAGE_SQL,
                (session_id, category or "general", mode, int(estimated_tokens or 0), int(success), safe_error_msg),
            )
        conn.commit()
        logger.info("사용 이력 저장 완료: category=%s, mode=%s, success=%s", category, mode, success)
        return True
    except pymysql.MySQLError as e:
        logger.error("[DB Error] 사용 이력 저장 실패 (host=%s, db=%s): %s",
                     os.getenv("DB_HOST", "localhost"), os.getenv("DB_NAME", "school_records"), e)
    except (TypeError, ValueError) as e:
        logger.error("[DB Log Unexpected Error] %s", e)
    finally:
        if conn:
            conn.close()
    return False
