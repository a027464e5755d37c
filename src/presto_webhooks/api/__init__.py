"""FastAPI trigger API for webhook deliveries.

Example:
    ```python
    import uvicorn
    from presto_webhooks.api import create_app

    app = create_app(store=my_store)
    uvicorn.run(app, host="0.0.0.0", port=8000)
    ```

Or run directly:
    ```bash
    uvicorn presto_webhooks.api:app --reload
    ```
"""

from .app import app, create_app, register_exception_handlers
from .router import router

__all__ = [
    "app",
    "create_app",
    "register_exception_handlers",
    "router",
]
