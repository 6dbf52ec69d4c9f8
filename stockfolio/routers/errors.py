"""HTTP mapping for quote API failures."""

from fastapi import HTTPException, status

from stockfolio.services.quotes import InvalidSymbolError, QuoteError


def quote_http_error(error: QuoteError) -> HTTPException:
    """Unknown symbols are the caller's fault (400); anything else is ours (500)."""
    if isinstance(error, InvalidSymbolError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=str(error),
    )
