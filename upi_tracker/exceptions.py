"""
Exceções de domínio do UPI QR Tracker.

Hierarquia:
    UPITrackerError (base)
    ├── UsernameTakenError
    ├── InvalidCredentialsError
    └── InvalidTokenError

As rotas convertem essas exceções em respostas HTTP; os serviços não
conhecem status codes.
"""


class UPITrackerError(Exception):
    """Base de todos os erros de domínio."""


class UsernameTakenError(UPITrackerError):
    """O nome de usuário já está cadastrado."""


class InvalidCredentialsError(UPITrackerError):
    """
    Usuário inexistente ou senha incorreta.

    A mesma mensagem é usada nos dois casos para não revelar quais nomes de
    usuário existem.
    """


class InvalidTokenError(UPITrackerError):
    """Token com assinatura inválida, malformado ou expirado."""
