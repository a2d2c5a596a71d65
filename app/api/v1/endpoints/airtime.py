import logging

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import AirtimeError, DatabaseNotConfiguredError, UnexpectedError, is_missing_relation
from app.schemas.airtime import AirtimeRequest, AirtimeResponse, AirtimeResultData, ErrorResponse
from app.services.airtime import process_topup

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "",
    response_model=AirtimeResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def send_airtime(payload: AirtimeRequest, db: Session = Depends(get_db)):
    try:
        outcome = process_topup(db, payload.recipient)
    except AirtimeError:
        raise
    except SQLAlchemyError as exc:
        if is_missing_relation(exc):
            raise DatabaseNotConfiguredError() from exc
        logger.exception("Database error while processing airtime request")
        raise UnexpectedError() from exc
    except Exception as exc:
        logger.exception("Error processing airtime request")
        raise UnexpectedError() from exc

    body = AirtimeResponse(
        success=outcome.success,
        message=outcome.message,
        data=AirtimeResultData(
            recipient=outcome.recipient,
            amount=f"{outcome.amount:.2f}",
            currency=outcome.currency,
            status=outcome.status,
            transaction_id=outcome.transaction_id,
            reference=outcome.reference,
            balance=outcome.balance,
        ),
    )
    return JSONResponse(status_code=outcome.http_status, content=jsonable_encoder(body))
