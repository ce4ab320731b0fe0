from dataclasses import dataclass
from typing import Protocol, Optional


@dataclass
class PrimaryIdentity:
    uid: str
    email: Optional[str]
    role: Optional[str]


class PrimaryIdentityProvider(Protocol):
    def resolve(self, id_token: str) -> Optional[PrimaryIdentity]:
        ...

    def sign_out(self, uid: str) -> None:
        ...


class StaffDirectory(Protocol):
    def get_role(self, uid: str) -> Optional[str]:
        ...
