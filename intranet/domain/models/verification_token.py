"""Single-use passwordless sign-in tokens."""

from sqlalchemy import Column, DateTime, Integer, String

from intranet.infrastructure.database import Base


class VerificationToken(Base):
    __tablename__ = "verification_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    identifier = Column(String(255), nullable=False, index=True)  # email
    token = Column(String(128), unique=True, nullable=False)
    expires = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<VerificationToken {self.identifier} until {self.expires}>"
