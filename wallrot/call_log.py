"""
Per-URL request counter stored in a SQL database.
"""

import logging
from sqlalchemy.exc import SQLAlchemyError
from wallrot.database import create_session_factory, get_db_context, init_db
from wallrot.db_models import ApiCall

logger = logging.getLogger(__name__)


class CallLog:
    """
    Counts how often each request URL has been served.

    Write failures are logged and swallowed; the request that triggered
    them has already been answered.
    """

    def __init__(self, database_url: str):
        """
        Initialize call log and create its table.

        Args:
            database_url: SQLAlchemy database URL
        """
        self.engine, self.session_factory = create_session_factory(database_url)
        init_db(self.engine)

    def record(self, api_url: str):
        """
        Increment the counter for a URL, inserting it on first use.

        Args:
            api_url: Request path with query string
        """
        try:
            with get_db_context(self.session_factory) as db:
                call = db.query(ApiCall).filter(ApiCall.api_url == api_url).first()

                if call:
                    call.call_count = ApiCall.call_count + 1
                    logger.debug("Updated call count for %s", api_url)
                else:
                    db.add(ApiCall(api_url=api_url, call_count=1))
                    logger.debug("Inserted call record for %s", api_url)
        except SQLAlchemyError as e:
            logger.error("Failed to record call for %s: %s", api_url, e)

    def count(self, api_url: str) -> int:
        """
        Get the recorded count for a URL.

        Returns:
            Number of recorded calls, 0 if never seen
        """
        with get_db_context(self.session_factory) as db:
            call = db.query(ApiCall).filter(ApiCall.api_url == api_url).first()
            return call.call_count if call else 0

    def close(self):
        """Dispose of the engine's connection pool."""
        self.engine.dispose()
