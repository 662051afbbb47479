# ABOUTME: Identity and role list value types returned by every client
# ABOUTME: Shared by IdP clients and IAM credential clients

from dataclasses import dataclass, field

PROVIDER_IAM = "AwsIdentityProvider"


@dataclass
class Identity:
    """The user behind a set of credentials."""

    username: str
    provider: str
    identity_type: str = "user"
    account_id: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "IdentityType": self.identity_type,
            "Provider": self.provider,
            "Username": self.username,
            "AccountId": self.account_id,
        }


@dataclass
class Roles:
    """Role ARNs available to an identity."""

    roles: list[str] = field(default_factory=list)

    def __iter__(self):
        return iter(self.roles)

    def __len__(self) -> int:
        return len(self.roles)

    def __contains__(self, role_arn: str) -> bool:
        return role_arn in self.roles
