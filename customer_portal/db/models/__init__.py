from .customers.customer import Customer
from .tenants.company import Company, CustomerCompany
from .tenants.staff import StaffUser
from .auth.otp import OTPChallenge
from .auth.session import PortalSession

__all__ = [
    "Customer",
    "Company",
    "CustomerCompany",
    "StaffUser",
    "OTPChallenge",
    "PortalSession",
]
