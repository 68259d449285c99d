from fastapi import HTTPException

from shards.domain.errors import ReferralNotFound, SeasonNotFound, ShardsError

NOT_FOUND_ERRORS = (SeasonNotFound, ReferralNotFound)


def http_error(error: ShardsError) -> HTTPException:
    """Map a domain error to 404 (missing records) or 400 (rule violations)."""
    status_code = 404 if isinstance(error, NOT_FOUND_ERRORS) else 400
    return HTTPException(status_code=status_code, detail=str(error))
