"""
Types partagés par les schémas (montants, clés de mois, horodatages)
"""
import logging
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from exceptions import ValidationError
from utils.dates import ensure_month_key, parse_iso_datetime

logger = logging.getLogger(__name__)


def _check_iso_datetime(value: str) -> str:
    parse_iso_datetime(value)
    return value


MoneyCents = Annotated[int, Field(ge=0, strict=True)]
MonthKey = Annotated[str, AfterValidator(ensure_month_key)]
IsoDateTime = Annotated[str, AfterValidator(_check_iso_datetime)]


class RecordModel(BaseModel):
    """Enregistrement complet tel que stocké (champs inconnus ignorés)"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class StrictInput(BaseModel):
    """Entrée de création / mise à jour : tout champ non déclaré est rejeté"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


def parse_model(schema, data, label: str):
    """Valide une entrée ; les erreurs pydantic deviennent des ValidationError métier"""
    if isinstance(data, schema):
        return data
    try:
        if isinstance(data, (str, bytes)):
            return schema.model_validate_json(data)
        return schema.model_validate(data if data is not None else {})
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e, label) from e


def load_record(schema, data: dict):
    """Valide un enregistrement lu en base ; None (et un avertissement) s'il est invalide"""
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        logger.warning(
            f"Enregistrement {schema.__name__} ignoré ({data.get('id', data.get('key'))}): "
            f"{e.error_count()} erreur(s) de validation"
        )
        return None


def require_month(month: str) -> str:
    """Clé de mois valide, sinon ValidationError"""
    try:
        return ensure_month_key(month)
    except ValueError as e:
        raise ValidationError(str(e)) from e


def reject_null(value):
    """Champ facultatif d'un patch : absent autorisé, null explicite refusé"""
    if value is None:
        raise ValueError("null is not allowed, omit the field instead")
    return value
