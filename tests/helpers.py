import os

from sqlalchemy import event
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from app.services.gateway_signature import notification_signature
from app.utils.token import create_access_token

SERVER_KEY = os.environ["MIDTRANS_SERVER_KEY"]


def sqlite_engine(url="sqlite://"):
    """SQLite engine with working SAVEPOINTs; in-memory unless a file url is given."""
    if url == "sqlite://":
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(url, connect_args={"check_same_thread": False})

    # pysqlite needs explicit BEGIN for SAVEPOINT to behave
    @event.listens_for(engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


def signed_notification(order_id, transaction_status, fraud_status=None,
                        status_code="200", gross_amount="235000.00",
                        server_key=SERVER_KEY, **extra):
    notification = {
        "order_id": order_id,
        "status_code": status_code,
        "gross_amount": gross_amount,
        "transaction_status": transaction_status,
        "signature_key": notification_signature(order_id, status_code, gross_amount, server_key),
        "payment_type": "bank_transfer",
        "transaction_time": "2026-10-19 10:00:00",
    }
    if fraud_status is not None:
        notification["fraud_status"] = fraud_status
    notification.update(extra)
    return notification
