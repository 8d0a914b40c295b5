from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from upi_tracker import schemas
from upi_tracker.auth import AuthService
from upi_tracker.demo import seed_demo_data
from upi_tracker.exceptions import InvalidCredentialsError, InvalidTokenError, UsernameTakenError
from upi_tracker.models import QRCode, Stats, Transaction, User
from upi_tracker.qr_service import QRCodeService
from upi_tracker.repository import Repository
from upi_tracker.stats import recompute_stats
from upi_tracker.utils.logger import logger

router = APIRouter()

bearer_scheme = HTTPBearer(auto_error=False)


def get_repository(request: Request) -> Repository:
    return request.app.state.repository


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_qr_service(request: Request) -> QRCodeService:
    return request.app.state.qr_service


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> User:
    """Token bearer (API) ou cookie de sessão (login pelo navegador)."""
    if credentials is not None:
        try:
            user_id = auth_service.verify_token(credentials.credentials).id
        except InvalidTokenError:
            raise HTTPException(status_code=401, detail="Invalid or expired token")
    else:
        user_id = request.session.get("user_id")
        if user_id is None:
            raise HTTPException(status_code=401, detail="Authentication required")

    user = auth_service.get_user_by_id(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def _user_public(user: User) -> schemas.UserPublic:
    # Nunca devolve o hash da senha
    return schemas.UserPublic(
        id=user.id,
        username=user.username,
        upi_id=user.upi_id,
        email=user.email,
        full_name=user.full_name,
    )


def _qr_public(record: QRCode) -> schemas.QRPublic:
    return schemas.QRPublic(
        id=record.id,
        user_id=record.user_id,
        upi_id=record.upi_id,
        name=record.name,
        amount=record.amount,
        description=record.description,
        size=record.size,
        border_style=record.border_style,
        created_at=record.created_at,
        qr_data=record.qr_data,
    )


def _transaction_public(record: Transaction) -> schemas.TransactionPublic:
    return schemas.TransactionPublic(
        id=record.id,
        qr_code_id=record.qr_code_id,
        amount=record.amount,
        payer_name=record.payer_name,
        payer_upi_id=record.payer_upi_id,
        timestamp=record.timestamp,
        status=record.status,
        metadata=record.meta or {},
    )


def _stats_public(record: Stats) -> schemas.StatsPublic:
    return schemas.StatsPublic(
        id=record.id,
        user_id=record.user_id,
        total_payments=record.total_payments,
        active_qr_codes=record.active_qr_codes,
        total_transactions=record.total_transactions,
        unique_payers=record.unique_payers,
        last_updated=record.last_updated,
    )


def _register(body: schemas.UserCreate, auth_service: AuthService) -> User:
    try:
        return auth_service.register(
            username=body.username,
            password=body.password,
            upi_id=body.upi_id,
            email=body.email,
            full_name=body.full_name,
        )
    except UsernameTakenError:
        raise HTTPException(status_code=409, detail="Username already exists")


# Autenticação


@router.post("/register", response_model=schemas.UserPublic, status_code=status.HTTP_201_CREATED)
def register_user(body: schemas.UserCreate, auth_service: AuthService = Depends(get_auth_service)):
    """Cria a conta (com estatísticas zeradas)."""
    return _user_public(_register(body, auth_service))


@router.post("/login", response_model=schemas.LoginResponse)
def login(
    body: schemas.LoginRequest,
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
):
    try:
        user, token = auth_service.login(body.username, body.password)
    except InvalidCredentialsError:
        raise HTTPException(status_code=401, detail="Invalid credentials")

    # Mesmo usuário disponível para o navegador via cookie de sessão
    request.session["user_id"] = user.id
    return schemas.LoginResponse(user=_user_public(user), token=token)


@router.get("/user", response_model=schemas.UserPublic)
def current_user(me: User = Depends(get_current_user)):
    return _user_public(me)


@router.post("/logout", response_model=schemas.MessageResponse)
def logout(request: Request):
    # O token bearer é descartado pelo cliente; aqui só limpamos a sessão
    request.session.clear()
    return schemas.MessageResponse(message="Logged out successfully")


# Usuários


@router.post("/users", response_model=schemas.UserPublic, status_code=status.HTTP_201_CREATED)
def create_user(body: schemas.UserCreate, auth_service: AuthService = Depends(get_auth_service)):
    return _user_public(_register(body, auth_service))


@router.get("/users/{user_id}", response_model=schemas.UserPublic)
def get_user(user_id: int, repository: Repository = Depends(get_repository)):
    user = repository.get_user(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return _user_public(user)


@router.patch("/users/{user_id}", response_model=schemas.UserPublic)
def update_user(
    user_id: int, body: schemas.UserUpdate, repository: Repository = Depends(get_repository)
):
    user = repository.update_user(
        user_id, upi_id=body.upi_id, email=body.email, full_name=body.full_name
    )
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return _user_public(user)


# QR Codes


@router.post("/qr-codes", response_model=schemas.QRPublic, status_code=status.HTTP_201_CREATED)
def create_qr(
    payload: schemas.QRCreate,
    repository: Repository = Depends(get_repository),
    qr_service: QRCodeService = Depends(get_qr_service),
):
    if not repository.get_user(payload.user_id):
        raise HTTPException(status_code=404, detail="User not found")

    generated = qr_service.generate(
        upi_id=payload.upi_id,
        name=payload.name,
        amount=payload.amount,
        description=payload.description,
        size=payload.size,
        border_style=payload.border_style,
    )

    record = repository.create_qr_code(
        QRCode(
            user_id=payload.user_id,
            upi_id=payload.upi_id,
            name=payload.name,
            amount=payload.amount,
            description=payload.description,
            size=generated.size,
            border_style=generated.border_style,
            qr_data=generated.data,
        )
    )
    logger.info(f"QR Code {record.id} criado para o usuário {record.user_id}: {generated.upi_url}")
    return _qr_public(record)


@router.get("/qr-codes/{qr_id}", response_model=schemas.QRPublic)
def get_qr(qr_id: int, repository: Repository = Depends(get_repository)):
    record = repository.get_qr_code(qr_id)
    if not record:
        raise HTTPException(status_code=404, detail="QR code not found")
    return _qr_public(record)


@router.get("/users/{user_id}/qr-codes", response_model=list[schemas.QRPublic])
def list_qr(user_id: int, repository: Repository = Depends(get_repository)):
    return [_qr_public(item) for item in repository.get_qr_codes_by_user_id(user_id)]


@router.delete("/qr-codes/{qr_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_qr(qr_id: int, repository: Repository = Depends(get_repository)):
    if not repository.delete_qr_code(qr_id):
        raise HTTPException(status_code=404, detail="QR code not found")

    logger.info(f"QR Code {qr_id} removido com suas transações")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Transações


@router.post(
    "/transactions", response_model=schemas.TransactionPublic, status_code=status.HTTP_201_CREATED
)
def create_transaction(
    payload: schemas.TransactionCreate, repository: Repository = Depends(get_repository)
):
    if not repository.get_qr_code(payload.qr_code_id):
        raise HTTPException(status_code=404, detail="QR code not found")

    record = repository.create_transaction(
        Transaction(
            qr_code_id=payload.qr_code_id,
            amount=payload.amount,
            payer_name=payload.payer_name,
            payer_upi_id=payload.payer_upi_id,
            status=payload.status,
            meta=payload.metadata,
        )
    )
    logger.info(f"Transação {record.id} de {record.amount} no QR Code {record.qr_code_id}")
    return _transaction_public(record)


@router.get("/transactions/{transaction_id}", response_model=schemas.TransactionPublic)
def get_transaction(transaction_id: int, repository: Repository = Depends(get_repository)):
    record = repository.get_transaction(transaction_id)
    if not record:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return _transaction_public(record)


@router.get("/qr-codes/{qr_id}/transactions", response_model=list[schemas.TransactionPublic])
def list_qr_transactions(qr_id: int, repository: Repository = Depends(get_repository)):
    return [_transaction_public(tx) for tx in repository.get_transactions_by_qr_code_id(qr_id)]


@router.get("/users/{user_id}/transactions", response_model=list[schemas.TransactionPublic])
def list_user_transactions(user_id: int, repository: Repository = Depends(get_repository)):
    return [_transaction_public(tx) for tx in repository.get_transactions_by_user_id(user_id)]


# Estatísticas


@router.get("/users/{user_id}/stats", response_model=schemas.StatsPublic)
def get_stats(user_id: int, repository: Repository = Depends(get_repository)):
    record = repository.get_stats(user_id)
    if not record:
        raise HTTPException(status_code=404, detail="Stats not found")
    return _stats_public(record)


@router.post("/users/{user_id}/stats/recompute", response_model=schemas.StatsPublic)
def recompute_user_stats(user_id: int, repository: Repository = Depends(get_repository)):
    """Refaz as estatísticas a partir das transações (recuperação de inconsistências)."""
    if not repository.get_user(user_id):
        raise HTTPException(status_code=404, detail="User not found")
    return _stats_public(recompute_stats(repository, user_id))


# Demonstração


@router.post("/demo-data", response_model=schemas.MessageResponse, status_code=status.HTTP_201_CREATED)
def create_demo_data(
    repository: Repository = Depends(get_repository),
    auth_service: AuthService = Depends(get_auth_service),
    qr_service: QRCodeService = Depends(get_qr_service),
):
    seed_demo_data(repository, auth_service, qr_service)
    return schemas.MessageResponse(message="Demo data created successfully")
