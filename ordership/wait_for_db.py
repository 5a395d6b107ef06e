"""Simple database readiness check script."""
import time
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from typing import Optional
from ordership.core import get_logger
from ordership.infrastructure.db import get_engine

logger = get_logger(__name__)

def wait(max_attempts: int = 30, delay: float = 1.0, engine: Optional[Engine] = None) -> bool:
    engine = engine or get_engine()
    for attempt in range(1, max_attempts + 1):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info(f"Database ready after {attempt} attempt(s).")
            return True
        except SQLAlchemyError as e:
            logger.warning(f"DB not ready (attempt {attempt}): {e}")
            time.sleep(delay)
    raise SystemExit("Database not ready after max attempts")

if __name__ == "__main__":
    wait()
