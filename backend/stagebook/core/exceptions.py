"""
Typed errors raised by the scheduling engine.

Every expected failure has its own class, code and user-facing message so
the HTTP layer (or any other caller) can tell them apart. Only
StorageFailure carries a generic message.
"""

from typing import Any, Optional

from fastapi import status


class SchedulingError(Exception):
    """Base class for all engine errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Opération impossible."

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.message = message or self.default_message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


# Date ranges and generation

class InvalidRange(SchedulingError):
    default_message = "Période invalide : la fin doit être après le début."


class InvalidProgramType(SchedulingError):
    default_message = "Type de programmation incompatible avec cette opération."


class OverlapConflict(SchedulingError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Chevauchement détecté : un créneau existe déjà sur cette période."


# Applications and bookings

class SlotNotOpen(SchedulingError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Ce créneau n'est plus ouvert aux candidatures."


class DuplicateApplication(SchedulingError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Vous avez déjà candidaté sur ce créneau."


class InvalidOption(SchedulingError):
    default_message = "Option de rémunération inconnue pour cette programmation."


class AlreadyBooked(SchedulingError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Ce créneau vient d'être attribué à un autre artiste."


class SlotAlreadyBooked(SchedulingError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Impossible d'annuler un créneau déjà confirmé."


class NotPending(SchedulingError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Seule une candidature en attente peut être retirée."
    confirm_message = "Seule une candidature en attente peut être confirmée."


class BookingNotActive(SchedulingError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Cette réservation est déjà annulée."


# Programs

class InvalidStatus(SchedulingError):
    default_message = "Statut invalide."


# Lookups

class NotFound(SchedulingError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Ressource introuvable."

    def __init__(self, resource_id: Any = None) -> None:
        super().__init__(details={"id": resource_id} if resource_id is not None else None)
        self.resource_id = resource_id


class ProgramNotFound(NotFound):
    default_message = "Programmation introuvable."


class SlotNotFound(NotFound):
    default_message = "Créneau introuvable."


class ApplicationNotFound(NotFound):
    default_message = "Candidature introuvable."


class BookingNotFound(NotFound):
    default_message = "Réservation introuvable."


# Infrastructure

class StorageFailure(SchedulingError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Une erreur est survenue. Merci de réessayer."
