from sqlalchemy.orm import Session
from storefront.data.models.user import UserModel
from storefront.domain.errors import NotFound, ValidationError
from storefront.repos.user_repo import UserRepo
from storefront.domain.schemas import UserCreate, UserRead


class UserService:
    """
    Local mirror of accounts owned by the credential service.
    Carts and orders only need a user row to point at.
    """

    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def create_user(self, payload: UserCreate) -> UserRead:
        if self.repo.get_by_email(payload.email):
            raise ValidationError("User with this email already exists")

        user = UserModel(
            email=payload.email,
            first_name=payload.first_name,
            last_name=payload.last_name,
            is_admin=payload.is_admin,
        )
        created = self.repo.create_user(user)
        return UserRead.model_validate(created)

    def get_user(self, user_id: str) -> UserRead:
        user = self.repo.get_user(user_id)
        if not user:
            raise NotFound(f"User {user_id} not found", resource_id=user_id)
        return UserRead.model_validate(user)
