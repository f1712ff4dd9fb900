from fastapi import Depends, HTTPException, status

from fee_queue.auth.dependencies import get_current_user
from fee_queue.auth.schemas import CurrentUser
from fee_queue.core.enums import UserRole


def require_role(*roles: UserRole):
    """
    Dependency factory restricting an endpoint to the given roles.

    Example:
        current_user: CurrentUser = Depends(require_role(UserRole.ACCOUNTANT))
    """
    allowed = {r.value for r in roles}

    async def _checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied",
            )
        return current_user

    return _checker


require_student = require_role(UserRole.STUDENT)
require_accountant = require_role(UserRole.ACCOUNTANT, UserRole.ADMIN)
require_admin = require_role(UserRole.ADMIN)
