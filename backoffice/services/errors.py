from __future__ import annotations

from fastapi import HTTPException, status


class ModifierAssignmentError(Exception):
    """Base dos erros de domínio do back-office."""


class NotFoundError(ModifierAssignmentError):
    def __init__(self, entity: str, code: str | None) -> None:
        self.entity = entity
        self.code = code
        super().__init__(f"{entity} não encontrado: {code}")


class AssignmentValidationError(ModifierAssignmentError):
    pass


class TransactionFailure(ModifierAssignmentError):
    """Falha do banco durante a gravação; a operação pode ser repetida."""


def to_http_exception(exc: ModifierAssignmentError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, AssignmentValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, TransactionFailure):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{exc} Tente novamente.",
            headers={"Retry-After": "1"},
        )
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno")
