"""
Database Session Management

Sessions come from the engine and pool that app.main configures through
atams.db.init_database (DB_POOL_* settings).

Usage:
    @router.post("/checkin")
    async def endpoint(db: Session = Depends(get_db)):
        # Use db here
        pass
"""
from atams.db import get_db

__all__ = ["get_db"]
