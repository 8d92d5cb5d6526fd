import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from consultly.core.enums import RoleName
from consultly.core.exceptions import ServiceException
from consultly.models.user import User
from consultly.services.base import BaseService


class _UserService(BaseService):
    @BaseService.measure_operation("add_user")
    def add_user(self, email: str) -> User:
        with self.transaction():
            user = User(email=email, name="Sam Sample", role=RoleName.USER.value)
            self.db.add(user)
            self.db.flush()
        return user

    @BaseService.measure_operation("add_then_fail")
    def add_then_fail(self, email: str) -> None:
        with self.transaction():
            self.db.add(User(email=email, name="Sam Sample", role=RoleName.USER.value))
            self.db.flush()
            raise ValueError("boom")

    def broken_query(self) -> None:
        with self.transaction():
            raise OperationalError("SELECT 1", {}, Exception("connection lost"))


def test_transaction_commits(db: Session) -> None:
    user = _UserService(db).add_user("first@example.com")
    assert db.query(User).filter(User.id == user.id).count() == 1


def test_transaction_rolls_back_and_reraises(db: Session) -> None:
    with pytest.raises(ValueError):
        _UserService(db).add_then_fail("rolled@example.com")
    assert db.query(User).filter(User.email == "rolled@example.com").count() == 0


def test_database_errors_become_service_exception(db: Session) -> None:
    with pytest.raises(ServiceException):
        _UserService(db).broken_query()


def test_measure_operation_tracks_success_and_failure(db: Session) -> None:
    service = _UserService(db)
    service.add_user("metrics@example.com")
    with pytest.raises(ValueError):
        service.add_then_fail("metrics-fail@example.com")

    metrics = service.get_metrics()
    assert metrics["add_user"]["count"] >= 1
    assert metrics["add_user"]["success_rate"] == 1.0
    assert metrics["add_then_fail"]["success_rate"] == 0.0
