from upi_tracker.auth import AuthService
from upi_tracker.models import QRCode, Transaction, User
from upi_tracker.qr_service import QRCodeService
from upi_tracker.repository import Repository
from upi_tracker.utils.logger import logger

DEMO_USERNAME = "demo"
DEMO_PASSWORD = "password"
DEMO_UPI_ID = "demo@okicici"

DEMO_QR_CODES = [
    {"name": "Grocery Store QR", "amount": "0", "description": "Payments for groceries", "size": "medium", "border_style": "simple"},
    {"name": "Restaurant QR", "amount": "0", "description": "Payments for restaurant", "size": "medium", "border_style": "rounded"},
    {"name": "Website QR", "amount": "1000", "description": "Donations for website", "size": "large", "border_style": "fancy"},
]

# (índice do QR Code, valor, pagador, UPI do pagador)
DEMO_TRANSACTIONS = [
    (0, "1250", "Amit Kumar", "amit@okaxis"),
    (1, "850", "Preeti Singh", "preeti@okhdfcbank"),
    (2, "2000", "Vikram Patel", "vikram@oksbi"),
    (0, "500", "Neha Gupta", "neha@okpnb"),
    (1, "1800", "Rajesh Khanna", "rajesh@okicici"),
]


def seed_demo_data(
    repository: Repository, auth_service: AuthService, qr_service: QRCodeService
) -> User:
    """Cria o usuário "demo" com QR Codes e pagamentos de exemplo.

    Idempotente: se o usuário já tem QR Codes nada é recriado.
    """
    user = repository.get_user_by_username(DEMO_USERNAME)
    if user is None:
        user = auth_service.register(
            username=DEMO_USERNAME,
            password=DEMO_PASSWORD,
            upi_id=DEMO_UPI_ID,
            email="demo@example.com",
            full_name="Demo User",
        )

    if repository.get_qr_codes_by_user_id(user.id):
        logger.info("Dados de demonstração já existem; nada a fazer")
        return user

    upi_id = user.upi_id or DEMO_UPI_ID
    qr_codes = []
    for item in DEMO_QR_CODES:
        generated = qr_service.generate(
            upi_id=upi_id,
            name=item["name"],
            amount=item["amount"],
            description=item["description"],
            size=item["size"],
            border_style=item["border_style"],
        )
        qr_codes.append(
            repository.create_qr_code(
                QRCode(user_id=user.id, upi_id=upi_id, qr_data=generated.data, **item)
            )
        )

    for index, amount, payer_name, payer_upi_id in DEMO_TRANSACTIONS:
        repository.create_transaction(
            Transaction(
                qr_code_id=qr_codes[index].id,
                amount=amount,
                payer_name=payer_name,
                payer_upi_id=payer_upi_id,
                status="completed",
                meta={},
            )
        )

    logger.info(f"Dados de demonstração criados para o usuário {user.id}")
    return user
