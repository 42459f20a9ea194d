"""Create a doctor, patient or admin identity from the command line.

    python -m hms.create_user --role doctor --email house@hospital.org \
        --password secret --first-name Gregory --last-name House \
        --specialty Diagnostics --print-token
"""
import argparse
import logging
import sys

from sqlalchemy.orm import Session

from .core.database import SessionLocal, init_db
from .core.security import CallerIdentity, UserRole, create_access_token, get_password_hash
from .models.doctor import Doctor
from .models.patient import Patient
from .models.user import User

logger = logging.getLogger(__name__)


def create_user(
    db: Session,
    email: str,
    password: str,
    role: UserRole,
    first_name: str,
    last_name: str,
    specialty: str = None,
) -> User:
    """Create an identity and, for doctors and patients, its profile row."""
    if db.query(User).filter(User.email == email).first():
        raise ValueError(f"Email already registered: {email}")
    
    user = User(
        email=email,
        password_hash=get_password_hash(password),
        role=role,
        is_active=True
    )
    
    if role == UserRole.DOCTOR:
        user.doctor = Doctor(first_name=first_name, last_name=last_name, specialty=specialty)
    elif role == UserRole.PATIENT:
        user.patient = Patient(first_name=first_name, last_name=last_name)
    
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create a hospital management user")
    parser.add_argument("--role", choices=[role.value for role in UserRole], required=True)
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--first-name", required=True)
    parser.add_argument("--last-name", required=True)
    parser.add_argument("--specialty", help="Doctors only")
    parser.add_argument("--print-token", action="store_true", help="Print an access token for the new user")
    args = parser.parse_args(argv)

    _setup_logging()
    init_db()

    db = SessionLocal()
    try:
        user = create_user(
            db,
            email=args.email,
            password=args.password,
            role=UserRole(args.role),
            first_name=args.first_name,
            last_name=args.last_name,
            specialty=args.specialty,
        )
    except ValueError as e:
        logger.error(str(e))
        return 1
    finally:
        db.close()

    logger.info("Created %s user %s with id %s", args.role, args.email, user.id)
    if args.print_token:
        print(create_access_token(CallerIdentity(id=user.id, role=user.role)))
    return 0


if __name__ == "__main__":
    sys.exit(main())
