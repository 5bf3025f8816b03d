import logging
from datetime import date, datetime, timezone
from functools import lru_cache
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Depends, Security, Query
from fastapi.security import APIKeyHeader
from pydantic import BaseModel, Field

from lending.config import settings
from lending.database import get_db_connection
from lending.library import Library
from lending.outcomes import Outcome, Result

logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, version=settings.app_version)


@lru_cache(maxsize=1)
def get_library() -> Library:
    """The process-wide Library; it owns the calendar policy and its holiday cache."""
    return Library(db_file=settings.db_file)


# --- Security ---
api_key_header = APIKeyHeader(name="X-API-Key")


def get_api_key(api_key: str = Security(api_key_header)):
    """Dependency validating the API key."""
    if api_key == settings.api_key:
        return api_key
    raise HTTPException(status_code=403, detail="Could not validate credentials")


# --- Models ---
class BookModel(BaseModel):
    book_id: int
    title: str
    author: str
    isbn: str
    publisher: Optional[str] = None
    stock: int


class BookCreateModel(BaseModel):
    title: str = Field(..., min_length=1)
    author: str = Field(..., min_length=1)
    isbn: str
    publisher: Optional[str] = None
    stock: int = Field(1, ge=0)


class StockUpdateModel(BaseModel):
    stock: int = Field(..., ge=0)


class MemberModel(BaseModel):
    member_id: int
    name: str
    phone_number: Optional[str] = None


class MemberCreateModel(BaseModel):
    name: str = Field(..., min_length=1)
    phone_number: Optional[str] = None


class LoanModel(BaseModel):
    loan_id: int
    book_id: int
    member_id: int
    borrow_date: date
    due_date: date
    return_date: Optional[date] = None
    extension_count: int
    status: str


class BorrowModel(BaseModel):
    book_id: int = Field(..., gt=0)
    member_id: int = Field(..., gt=0)


class ExtendModel(BaseModel):
    days: int = Field(settings.extension_days, ge=1)


class HolidayModel(BaseModel):
    holiday_date: date
    description: str = ""


class CalendarDayModel(BaseModel):
    day: date
    non_lending: bool


# Outcome -> HTTP status for failed operations
_STATUS_BY_OUTCOME = {
    Outcome.NOT_FOUND: 404,
    Outcome.OUT_OF_STOCK: 409,
    Outcome.ALREADY_RETURNED: 409,
    Outcome.ALREADY_EXTENDED: 409,
    Outcome.DUPLICATE: 409,
    Outcome.HAS_ACTIVE_LOANS: 409,
    Outcome.INVALID_INPUT: 422,
    Outcome.SCHEDULE_UNREACHABLE: 422,
    Outcome.STORE_WRITE_FAILED: 503,
    Outcome.POLICY_LOAD_FAILED: 503,
}


def _unwrap(result: Result):
    """Return the result value or raise the HTTP error matching its outcome."""
    if result.ok:
        return result.value
    raise HTTPException(
        status_code=_STATUS_BY_OUTCOME.get(result.outcome, 400),
        detail={"outcome": result.outcome.value, "message": result.detail},
    )


# --- Health Check ---
@app.get("/health")
def health(library: Library = Depends(get_library)):
    db_ok = True
    try:
        conn = get_db_connection(library.store.db_file)
        conn.execute("SELECT 1")
        conn.close()
    except Exception as e:
        logger.warning("Health check could not reach the database: %s", e)
        db_ok = False
    return {
        "status": "healthy" if db_ok else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "db": db_ok,
        "calendar": library.policy_status().value,
    }


@app.get("/stats")
def stats(library: Library = Depends(get_library)):
    return library.get_statistics()


# --- Books ---
@app.get("/books", response_model=List[BookModel])
def list_books(q: Optional[str] = Query(None, description="Title keyword"), library: Library = Depends(get_library)):
    books = library.search_books_by_title(q) if q else library.list_books()
    return [b.to_dict() for b in books]


@app.get("/books/{book_id}", response_model=BookModel)
def get_book(book_id: int, library: Library = Depends(get_library)):
    book = library.find_book(book_id)
    if not book:
        raise HTTPException(status_code=404, detail="Book not found.")
    return book.to_dict()


@app.post("/books", response_model=BookModel, status_code=201, dependencies=[Depends(get_api_key)])
def create_book(payload: BookCreateModel, library: Library = Depends(get_library)):
    book = _unwrap(library.add_book(payload.title, payload.author, payload.isbn, payload.publisher, payload.stock))
    return book.to_dict()


@app.put("/books/{book_id}/stock", response_model=BookModel, dependencies=[Depends(get_api_key)])
def update_stock(book_id: int, payload: StockUpdateModel, library: Library = Depends(get_library)):
    return _unwrap(library.update_book_stock(book_id, payload.stock)).to_dict()


@app.delete("/books/{book_id}", dependencies=[Depends(get_api_key)])
def delete_book(book_id: int, library: Library = Depends(get_library)):
    _unwrap(library.delete_book(book_id))
    return {"message": f"Book {book_id} deleted."}


# --- Members ---
@app.get("/members", response_model=List[MemberModel])
def list_members(library: Library = Depends(get_library)):
    return [m.to_dict() for m in library.list_members()]


@app.post("/members", response_model=MemberModel, status_code=201, dependencies=[Depends(get_api_key)])
def create_member(payload: MemberCreateModel, library: Library = Depends(get_library)):
    return _unwrap(library.add_member(payload.name, payload.phone_number)).to_dict()


@app.delete("/members/{member_id}", dependencies=[Depends(get_api_key)])
def delete_member(member_id: int, library: Library = Depends(get_library)):
    _unwrap(library.delete_member(member_id))
    return {"message": f"Member {member_id} deleted."}


# --- Loans ---
@app.get("/loans", response_model=List[LoanModel])
def list_loans(active: bool = False, library: Library = Depends(get_library)):
    return [loan.to_dict() for loan in library.list_loans(active_only=active)]


@app.post("/loans", response_model=LoanModel, status_code=201, dependencies=[Depends(get_api_key)])
def borrow(payload: BorrowModel, library: Library = Depends(get_library)):
    return _unwrap(library.borrow_book(payload.book_id, payload.member_id)).to_dict()


@app.post("/loans/{loan_id}/return", response_model=LoanModel, dependencies=[Depends(get_api_key)])
def return_loan(loan_id: int, library: Library = Depends(get_library)):
    return _unwrap(library.return_book(loan_id)).to_dict()


@app.post("/loans/{loan_id}/extend", response_model=LoanModel, dependencies=[Depends(get_api_key)])
def extend_loan(loan_id: int, payload: Optional[ExtendModel] = None, library: Library = Depends(get_library)):
    days = payload.days if payload else settings.extension_days
    return _unwrap(library.extend_due_date(loan_id, days)).to_dict()


# --- Holidays ---
@app.get("/holidays", response_model=List[HolidayModel])
def list_holidays(library: Library = Depends(get_library)):
    return [{"holiday_date": d, "description": desc} for d, desc in library.list_holidays()]


@app.post("/holidays", response_model=HolidayModel, status_code=201, dependencies=[Depends(get_api_key)])
def add_holiday(payload: HolidayModel, library: Library = Depends(get_library)):
    _unwrap(library.add_holiday(payload.holiday_date, payload.description))
    return payload


@app.delete("/holidays/{holiday_date}", dependencies=[Depends(get_api_key)])
def remove_holiday(holiday_date: date, library: Library = Depends(get_library)):
    _unwrap(library.remove_holiday(holiday_date))
    return {"message": f"Holiday {holiday_date.isoformat()} removed."}


@app.get("/calendar/{day}", response_model=CalendarDayModel)
def calendar_day(day: date, library: Library = Depends(get_library)):
    return {"day": day, "non_lending": library.is_holiday(day)}
