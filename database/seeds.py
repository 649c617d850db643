"""
Amorçage au premier lancement : catégories et paramètres par défaut
"""
import logging
import uuid

from database import crud
from database.models import CategoryModel
from database.store import RecordStore
from utils.dates import now_iso

logger = logging.getLogger(__name__)

SEED_VERSION_KEY = "seed:version"
SEED_VERSION_VALUE = 1

DEFAULT_CATEGORIES = [
    {"name": "Groceries",  "color": "#2563eb"},
    {"name": "Housing",    "color": "#9333ea"},
    {"name": "Transport",  "color": "#0d9488"},
    {"name": "Utilities",  "color": "#f59e0b"},
    {"name": "Dining Out", "color": "#f97316"},
    {"name": "Health",     "color": "#db2777"},
    {"name": "Leisure",    "color": "#3b82f6"},
    {"name": "Savings",    "color": "#16a34a"},
]

DEFAULT_SETTINGS = [
    ("currency", "EUR"),
    ("onboarding.completed", False),
]


def seed_database(store: RecordStore) -> bool:
    """Idempotent : ne fait rien si le marqueur de version est déjà posé. Retourne True si amorcé."""
    with store.exclusive_session() as db:
        marker = crud.get_setting(db, SEED_VERSION_KEY)
        if marker is not None and marker.value == SEED_VERSION_VALUE:
            return False

        if crud.count_rows(db, CategoryModel) == 0:
            now = now_iso()
            for category in DEFAULT_CATEGORIES:
                crud.put_category(db, {
                    "id": uuid.uuid4().hex,
                    "name": category["name"],
                    "color": category["color"],
                    "is_hidden": False,
                    "created_at": now,
                    "updated_at": now,
                })

        for key, value in DEFAULT_SETTINGS:
            crud.put_setting(db, key, value)
        crud.put_setting(db, SEED_VERSION_KEY, SEED_VERSION_VALUE)

    logger.info("Base amorcée avec les catégories et paramètres par défaut")
    return True
