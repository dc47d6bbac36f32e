from enum import Enum


class ItemCategory(str, Enum):
    electronics = "electronics"
    wallets_purses = "wallets_purses"
    keys = "keys"
    bags = "bags"
    documents = "documents"
    jewelry = "jewelry"
    clothing = "clothing"
    accessories = "accessories"
    other = "other"


class ItemStatus(str, Enum):
    available = "available"
    claimed = "claimed"
    verified = "verified"
    returned = "returned"


class VerificationStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class AppRole(str, Enum):
    user = "user"
    admin = "admin"


class OrganizationReviewStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class OrgRole(str, Enum):
    admin = "admin"
    owner = "owner"
