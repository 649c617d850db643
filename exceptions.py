"""
Erreurs métier remontées par le stockage et les services
"""
from typing import Any, Dict, List, Optional


class FinanceTrackerError(Exception):
    """Erreur de base du cœur applicatif"""


class ValidationError(FinanceTrackerError):
    """Entrée rejetée par la validation de schéma (aucune écriture effectuée)"""

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []

    @classmethod
    def from_pydantic(cls, exc, label: str) -> "ValidationError":
        errors = [
            {
                "loc": ".".join(str(part) for part in error.get("loc", ())),
                "msg": error.get("msg", ""),
                "type": error.get("type", ""),
            }
            for error in exc.errors()
        ]
        return cls(f"Invalid {label}: {exc.error_count()} validation error(s)", errors)


class NotFoundError(FinanceTrackerError):
    """L'enregistrement ciblé n'existe pas"""


class ConflictError(FinanceTrackerError):
    """L'écriture violerait une règle d'unicité ou de référence"""


class StorageError(FinanceTrackerError):
    """Échec de la base de données sous-jacente"""
