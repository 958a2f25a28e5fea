import enum
import secrets
import uuid
from datetime import datetime

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def _uuid():
    return str(uuid.uuid4())


def _iso(value):
    return value.isoformat() if value else None


class RolePermission(enum.Enum):
    BASIC = 100
    SERVICE_ACCOUNT = 200
    ADMIN = 1000

    @property
    def level(self):
        return self.value

    def outranks(self, other):
        """True if this role is at least as powerful as ``other``."""
        return self.level >= other.level

    @classmethod
    def parse(cls, value):
        if value is None:
            return None
        if isinstance(value, cls):
            return value
        if isinstance(value, dict):
            value = value.get('name') or value.get('role')
        try:
            return cls[str(value).upper()]
        except KeyError:
            raise ValueError(f'Unknown role "{value}"')


class User(db.Model):
    __tablename__ = 'user'

    uuid = db.Column(db.String(36), primary_key=True, default=_uuid)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    name = db.Column(db.String(30))
    surname = db.Column(db.String(30))
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.Enum(RolePermission), nullable=False, default=RolePermission.BASIC)
    is_verified = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.now)

    def outranks(self, role):
        return (self.role or RolePermission.BASIC).outranks(role)

    def to_dict(self):
        role = self.role or RolePermission.BASIC
        return {
            'uuid': self.uuid,
            'email': self.email,
            'name': self.name,
            'surname': self.surname,
            'role': {'name': role.name, 'permissions': role.level},
            'isVerified': bool(self.is_verified),
            'createdAt': _iso(self.created_at),
        }


class Category(db.Model):
    __tablename__ = 'category'

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.String(36), db.ForeignKey('user.uuid'), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.now)

    owner = db.relationship('User')
    budgets = db.relationship('Budget', back_populates='category', cascade='all, delete-orphan')

    __table_args__ = (db.UniqueConstraint('owner_id', 'name'),)

    def to_dict(self):
        return {
            'id': self.id,
            'owner': self.owner_id,
            'name': self.name,
            'description': self.description,
            'createdAt': _iso(self.created_at),
        }


class PaymentMethod(db.Model):
    __tablename__ = 'payment_method'

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.String(36), db.ForeignKey('user.uuid'), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    address = db.Column(db.String(100), nullable=False)
    provider = db.Column(db.String(100))
    description = db.Column(db.Text)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.now)

    owner = db.relationship('User')

    __table_args__ = (db.UniqueConstraint('owner_id', 'name', 'address'),)

    def to_dict(self):
        return {
            'id': self.id,
            'owner': self.owner_id,
            'name': self.name,
            'address': self.address,
            'provider': self.provider,
            'description': self.description,
            'createdAt': _iso(self.created_at),
        }


class Budget(db.Model):
    __tablename__ = 'budget'

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.String(36), db.ForeignKey('user.uuid'), nullable=False, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey('category.id'), nullable=False)
    budget = db.Column(db.Float, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.now)

    owner = db.relationship('User')
    category = db.relationship('Category', back_populates='budgets')

    # one budget per category and owner
    __table_args__ = (db.UniqueConstraint('owner_id', 'category_id'),)

    def to_dict(self):
        return {
            'id': self.id,
            'owner': self.owner_id,
            'category': self.category.to_dict() if self.category else None,
            'budget': self.budget,
            'createdAt': _iso(self.created_at),
        }


class Subscription(db.Model):
    __tablename__ = 'subscription'

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.String(36), db.ForeignKey('user.uuid'), nullable=False, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey('category.id'), nullable=False)
    payment_method_id = db.Column(db.Integer, db.ForeignKey('payment_method.id'), nullable=False)
    paused = db.Column(db.Boolean, nullable=False, default=False)
    execute_at = db.Column(db.Integer, nullable=False, index=True)  # day of month, 1-31
    receiver = db.Column(db.String(80), nullable=False)
    description = db.Column(db.Text)
    transfer_amount = db.Column(db.Float, nullable=False)  # positive = income, negative = expense
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.now)

    owner = db.relationship('User')
    category = db.relationship('Category')
    payment_method = db.relationship('PaymentMethod')

    @staticmethod
    def is_valid_execution_date(execute_at):
        return isinstance(execute_at, int) and not isinstance(execute_at, bool) and 1 <= execute_at <= 31

    def to_dict(self):
        return {
            'id': self.id,
            'owner': self.owner_id,
            'category': self.category.to_dict() if self.category else None,
            'paymentMethod': self.payment_method.to_dict() if self.payment_method else None,
            'paused': self.paused,
            'executeAt': self.execute_at,
            'receiver': self.receiver,
            'description': self.description,
            'transferAmount': self.transfer_amount,
            'createdAt': _iso(self.created_at),
        }


class Transaction(db.Model):
    __tablename__ = 'transaction'

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.String(36), db.ForeignKey('user.uuid'), nullable=False, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey('category.id'), nullable=False)
    payment_method_id = db.Column(db.Integer, db.ForeignKey('payment_method.id'), nullable=False)
    processed_at = db.Column(db.DateTime, nullable=False, default=datetime.now, index=True)
    receiver = db.Column(db.String(80), nullable=False)
    description = db.Column(db.Text)
    transfer_amount = db.Column(db.Float, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.now)

    owner = db.relationship('User')
    category = db.relationship('Category')
    payment_method = db.relationship('PaymentMethod')
    attached_files = db.relationship('TransactionFile', back_populates='transaction',
                                     cascade='all, delete-orphan', lazy=True)

    @classmethod
    def of_subscription(cls, subscription, now=None):
        now = now or datetime.now()
        return cls(
            owner_id=subscription.owner_id,
            category_id=subscription.category_id,
            payment_method_id=subscription.payment_method_id,
            processed_at=now,
            receiver=subscription.receiver,
            description=subscription.description,
            transfer_amount=subscription.transfer_amount,
            created_at=now,
        )

    def to_dict(self):
        return {
            'id': self.id,
            'owner': self.owner_id,
            'category': self.category.to_dict() if self.category else None,
            'paymentMethod': self.payment_method.to_dict() if self.payment_method else None,
            'processedAt': _iso(self.processed_at),
            'receiver': self.receiver,
            'description': self.description,
            'transferAmount': self.transfer_amount,
            'attachedFiles': [f.to_dict() for f in self.attached_files],
            'createdAt': _iso(self.created_at),
        }


class TransactionFile(db.Model):
    __tablename__ = 'transaction_file'

    uuid = db.Column(db.String(36), primary_key=True, default=_uuid)
    owner_id = db.Column(db.String(36), db.ForeignKey('user.uuid'), nullable=False, index=True)
    transaction_id = db.Column(db.Integer, db.ForeignKey('transaction.id'), nullable=False, index=True)
    file_name = db.Column(db.String(255))
    file_size = db.Column(db.Integer)
    mime_type = db.Column(db.String(100))
    location = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.now)

    transaction = db.relationship('Transaction', back_populates='attached_files')

    def to_dict(self):
        return {
            'uuid': self.uuid,
            'transactionId': self.transaction_id,
            'fileName': self.file_name,
            'fileSize': self.file_size,
            'mimeType': self.mime_type,
            'location': self.location,
            'createdAt': _iso(self.created_at),
        }


class UserPasswordReset(db.Model):
    __tablename__ = 'user_password_reset'

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.String(36), db.ForeignKey('user.uuid'), nullable=False, index=True)
    otp = db.Column(db.String(64), unique=True, nullable=False, default=lambda: secrets.token_urlsafe(32))
    used = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.now)

    owner = db.relationship('User')

    def to_dict(self):
        # the otp only travels by mail
        return {
            'id': self.id,
            'owner': self.owner_id,
            'used': self.used,
            'createdAt': _iso(self.created_at),
        }


class JobRun(db.Model):
    """Ledger of daily jobs that already ran, one row per job and day."""
    __tablename__ = 'job_run'

    id = db.Column(db.Integer, primary_key=True)
    job = db.Column(db.String(80), nullable=False)
    run_date = db.Column(db.Date, nullable=False)
    processed = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.now)

    __table_args__ = (db.UniqueConstraint('job', 'run_date'),)
