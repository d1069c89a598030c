"""GraphQL schema for operator accounts."""
import re

import strawberry
from strawberry import auto
import strawberry_django
from strawberry.types import Info

from django.contrib.auth.hashers import check_password

from apps.core.context import Context
from apps.core.permissions import check_admin, check_auth, get_current_user
from apps.core.schema import DeleteResult
from .models import User

EMAIL_PATTERN = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"


@strawberry_django.type(User)
class UserType:
    id: auto
    email: auto
    first_name: auto
    last_name: auto
    is_active: auto
    is_admin: auto
    last_login: auto

    @strawberry.field
    def full_name(self) -> str:
        """Return the user's full name."""
        return self.display_name


@strawberry.type
class OperationResult:
    """Generic result for mutations."""
    success: bool
    error: str | None = None


@strawberry.type
class UserResult:
    """Result of creating a user."""
    success: bool
    error: str | None = None
    user: UserType | None = None


@strawberry.input
class CreateUserInput:
    email: str
    password: str
    first_name: str = ""
    last_name: str = ""
    is_admin: bool = False


@strawberry.type
class UserQuery:
    @strawberry.field
    def users(self, info: Info[Context, None]) -> list[UserType]:
        """List all operator accounts."""
        get_current_user(info)
        return list(User.objects.all())


@strawberry.type
class UserMutation:
    @strawberry.mutation
    def create_user(self, info: Info[Context, None], input: CreateUserInput) -> UserResult:
        """Create another operator account. Administrators only."""
        _, err = check_admin(info)
        if err:
            return UserResult(success=False, error=err)

        email = input.email.lower().strip()
        if not re.match(EMAIL_PATTERN, email):
            return UserResult(success=False, error="Invalid email format")
        if len(input.password) < 8:
            return UserResult(success=False, error="Password must be at least 8 characters")
        if User.objects.filter(email=email).exists():
            return UserResult(success=False, error="A user with this email already exists")

        user = User.objects.create_user(
            email=email,
            password=input.password,
            first_name=input.first_name,
            last_name=input.last_name,
            is_admin=input.is_admin,
        )
        return UserResult(success=True, user=user)

    @strawberry.mutation
    def delete_user(self, info: Info[Context, None], user_id: int) -> DeleteResult:
        """Delete an operator account. Administrators only."""
        current, err = check_admin(info)
        if err:
            return DeleteResult(success=False, error=err)
        if current.id == user_id:
            return DeleteResult(success=False, error="You cannot delete your own account")

        deleted, _ = User.objects.filter(id=user_id).delete()
        if not deleted:
            return DeleteResult(success=False, error="User not found")
        return DeleteResult(success=True)

    @strawberry.mutation
    def change_password(
        self,
        info: Info[Context, None],
        current_password: str,
        new_password: str,
    ) -> OperationResult:
        """Change the current user's password."""
        user, err = check_auth(info)
        if err:
            return OperationResult(success=False, error=err)

        if not check_password(current_password, user.password):
            return OperationResult(success=False, error="Current password is incorrect")

        if len(new_password) < 8:
            return OperationResult(success=False, error="Password must be at least 8 characters")

        user.set_password(new_password)
        user.save()
        return OperationResult(success=True)
