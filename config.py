"""
Configuration de l'application, lue depuis l'environnement (et un fichier .env)
"""
import os

from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("FINANCE_DATABASE_URL", "sqlite:///./finance.db")

# Part de la limite de base à partir de laquelle un budget passe en "approaching"
APPROACHING_RATIO = float(os.getenv("FINANCE_APPROACHING_RATIO", "0.8"))

LOG_LEVEL = os.getenv("FINANCE_LOG_LEVEL", "INFO").upper()

API_HOST = os.getenv("FINANCE_API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("FINANCE_API_PORT", "8000"))
