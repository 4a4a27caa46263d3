import logging
from typing import Dict, List, Tuple

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"

LANGUAGES: Dict[str, str] = {
    "en": "English",
    "fr": "Français",
}

COUNTRIES: List[Tuple[str, str]] = [
    ("BE", "Belgium"),
    ("CA", "Canada"),
    ("CH", "Switzerland"),
    ("FR", "France"),
    ("GB", "United Kingdom"),
    ("US", "United States"),
]

CATALOGS: Dict[str, Dict[str, str]] = {
    "en": {
        "welcome": "Welcome",
        "requirements_check": "Requirements check",
        "database_parameters": "Database parameters",
        "platform_parameters": "Platform parameters",
        "admin_user": "Administrator account",
        "mail_server": "Mail server",
        "installation": "Installation",
        "failed_install": "Installation failed",
        "next": "Next",
        "skip": "Skip this step",
        "install": "Install",
        "retry": "Start again",
        "failed_requirement": "Some required settings are not met. The platform will not work until they are fixed.",
        "failed_recommendation": "Some recommended settings are not met.",
        "install_running": "Installation in progress, this may take a few minutes...",
        "no_log": "No log is available for this installation.",
    },
    "fr": {
        "welcome": "Bienvenue",
        "requirements_check": "Vérification de la configuration",
        "database_parameters": "Paramètres de la base de données",
        "platform_parameters": "Paramètres de la plateforme",
        "admin_user": "Compte administrateur",
        "mail_server": "Serveur de courriel",
        "installation": "Installation",
        "failed_install": "L'installation a échoué",
        "next": "Suivant",
        "skip": "Passer cette étape",
        "install": "Installer",
        "retry": "Recommencer",
        "failed_requirement": "Certains paramètres requis ne sont pas satisfaits. La plateforme ne fonctionnera pas tant qu'ils ne sont pas corrigés.",
        "failed_recommendation": "Certains paramètres recommandés ne sont pas satisfaits.",
        "install_running": "Installation en cours, cela peut prendre quelques minutes...",
        "no_log": "Aucun journal n'est disponible pour cette installation.",
    },
}


class Translator:
    def __init__(self, language: str = DEFAULT_LANGUAGE):
        self.language = DEFAULT_LANGUAGE
        self.set_language(language)

    def set_language(self, language: str) -> None:
        if language not in CATALOGS:
            logger.warning("Unknown language %r, falling back to %s", language, DEFAULT_LANGUAGE)
            language = DEFAULT_LANGUAGE
        self.language = language

    def translate(self, key: str) -> str:
        return CATALOGS[self.language].get(key, key)

    __call__ = translate
