import logging

import uvicorn

from ..core.config import configure_logging, settings
from .main import create_app
from .state import BackendState

logger = logging.getLogger(__name__)


def seeded_state() -> BackendState:
    """A small marketplace so the client can be tried against a local server."""
    state = BackendState()
    state.add_user("admin@bhav.local", "admin123", role="admin", name="Admin")
    seller = state.add_user("seller@bhav.local", "seller123", role="seller", name="Ravi", brand_name="Ravi Jewellers")
    state.add_user("customer@bhav.local", "customer123", name="Asha")
    state.add_item(seller["_id"], "Gold 24K 10g", buy_premium=120.0, sell_premium=80.0)
    state.add_item(seller["_id"], "Silver 1kg", buy_premium=350.0, sell_premium=200.0)
    return state


def main() -> None:
    configure_logging()
    logger.info(f"Starting stub backend on {settings.STUB_HOST}:{settings.STUB_PORT}")
    uvicorn.run(create_app(seeded_state()), host=settings.STUB_HOST, port=settings.STUB_PORT, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
