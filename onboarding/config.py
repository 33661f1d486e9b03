from dataclasses import dataclass
import os
import logging
from dotenv import load_dotenv

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppConfig:
    """
    Configurações principais da aplicação.

    Centraliza os endereços dos serviços externos (ViaCEP, IBGE),
    o destino da submissão final e os limites de sessão.
    """
    env: str = "dev"  # "dev" ou "prod"
    viacep_base_url: str = "https://viacep.com.br/ws"
    ibge_cnae_url: str = "https://servicodados.ibge.gov.br/api/v2/cnae/subclasses"
    lookup_timeout_s: float = 10.0
    cnae_retry_after_s: float = 30.0  # espera mínima antes de buscar de novo o catálogo CNAE após falha
    submission_url: str = "dev-log"
    submission_timeout_s: float = 15.0
    session_max_active: int = 500  # sessões em memória antes de descartar as mais antigas
    log_level: str = "INFO"

    @classmethod
    def load_from_env(cls) -> "AppConfig":
        """
        Carrega configuração a partir de variáveis de ambiente.
        Primeiro tenta carregar do arquivo .env, depois do ambiente do sistema.
        Nenhuma variável é obrigatória em dev; em prod a submissão real é exigida.
        """
        load_dotenv()

        env = os.getenv("ENV", "dev").lower()
        if env not in ("dev", "prod"):
            logger.warning(f"ENV inválido '{env}', usando 'dev' como padrão")
            env = "dev"

        viacep_base_url = os.getenv("VIACEP_BASE_URL", "https://viacep.com.br/ws").rstrip("/")
        ibge_cnae_url = os.getenv(
            "IBGE_CNAE_URL",
            "https://servicodados.ibge.gov.br/api/v2/cnae/subclasses",
        )
        lookup_timeout_s = float(os.getenv("LOOKUP_TIMEOUT_S", "10"))
        cnae_retry_after_s = float(os.getenv("CNAE_RETRY_AFTER_S", "30"))
        submission_url = os.getenv("SUBMISSION_URL", "dev-log").strip() or "dev-log"
        submission_timeout_s = float(os.getenv("SUBMISSION_TIMEOUT_S", "15"))
        session_max_active = int(os.getenv("SESSION_MAX_ACTIVE", "500"))
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()

        if env == "prod":
            if submission_url == "dev-log":
                raise RuntimeError(
                    "ENV=prod requer SUBMISSION_URL definida. "
                    "Configure o destino real dos cadastros no ambiente de produção."
                )
            logger.info("Modo PRODUÇÃO: SUBMISSION_URL validada")
        elif submission_url == "dev-log":
            logger.warning(
                "⚠️  MODO DEV: SUBMISSION_URL não configurada. "
                "Cadastros concluídos serão apenas registrados em log."
            )

        return cls(
            env=env,
            viacep_base_url=viacep_base_url,
            ibge_cnae_url=ibge_cnae_url,
            lookup_timeout_s=lookup_timeout_s,
            cnae_retry_after_s=cnae_retry_after_s,
            submission_url=submission_url,
            submission_timeout_s=submission_timeout_s,
            session_max_active=session_max_active,
            log_level=log_level,
        )
