from rest_framework import status
from rest_framework.exceptions import APIException, NotFound, ValidationError


class ContentNotFound(NotFound):
    """Missing and hidden content share this outcome so drafts never leak."""
    default_detail = "Conteudo nao encontrado."
    default_code = "content_not_found"


class AnswerValidationError(ValidationError):
    default_code = "invalid_answer"


class WalkerStateError(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Transicao invalida para o estado atual da trilha."
    default_code = "invalid_walker_transition"
