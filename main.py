# main.py

import logging

import uvicorn

from finance_tracker.core.config import Settings
from finance_tracker.main import create_app

# Configuração de logging
logging.basicConfig(level=logging.INFO,
                    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

settings = Settings.from_env()
app = create_app(settings)

# --- Inicialização da Aplicação ---
if __name__ == "__main__":
    logger.info(f"API running on http://localhost:{settings.port}")
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
