"""ORM models. Importing this package registers every table on ``Base.metadata``."""

from supplyvault.db.models.alert import Alert
from supplyvault.db.models.certification import Certification
from supplyvault.db.models.gmail import GmailAccount
from supplyvault.db.models.supplier import Supplier, SupplierConnection
from supplyvault.db.models.tenancy import Base, Brand

__all__ = [
    "Alert",
    "Base",
    "Brand",
    "Certification",
    "GmailAccount",
    "Supplier",
    "SupplierConnection",
]
