# main_api.py

import logging

from .api.main import create_app

logger = logging.getLogger(__name__)

app = create_app()

# --- Run Instruction (for direct execution, though usually run with uvicorn command) ---
if __name__ == "__main__":
    import uvicorn
    logger.info("Starting API server via __main__ (use 'uvicorn print_quote.main_api:app --reload' for development)")
    uvicorn.run(app, host="0.0.0.0", port=8000)
