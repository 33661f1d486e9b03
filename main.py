import logging
import uvicorn
import os
from logging.handlers import RotatingFileHandler
from datetime import datetime

from onboarding.config import AppConfig

config = AppConfig.load_from_env()

# Diretório de logs
log_dir = "logs"
os.makedirs(log_dir, exist_ok=True)

log_format = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
date_format = "%Y-%m-%d %H:%M:%S"
log_level = getattr(logging, config.log_level.upper(), logging.INFO)

root_logger = logging.getLogger()
root_logger.setLevel(log_level)

console_handler = logging.StreamHandler()
console_handler.setLevel(log_level)
console_handler.setFormatter(logging.Formatter(log_format, date_format))

# Rotação: 10MB por arquivo, 5 backups
log_file = os.path.join(log_dir, "app.log")
file_handler = RotatingFileHandler(
    log_file,
    maxBytes=10 * 1024 * 1024,
    backupCount=5,
    encoding='utf-8'
)
file_handler.setLevel(log_level)
file_handler.setFormatter(logging.Formatter(log_format, date_format))

root_logger.addHandler(console_handler)
root_logger.addHandler(file_handler)

logging.info(f"Logging configurado: arquivo={log_file}, level={logging.getLevelName(log_level)}")
logging.info(f"Cadastro de estabelecimentos iniciado em {datetime.now().strftime(date_format)} (env={config.env})")

from onboarding.api.http import app  # noqa: E402

if __name__ == "__main__":
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level=config.log_level.lower(),
    )
