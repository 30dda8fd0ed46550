"""
Inbound request models
Shapes accepted by the gateway's orchestrated endpoints
"""

from typing import ClassVar, Optional, Tuple

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class GatewayRequest(BaseModel):
    """
    Base for inbound request bodies

    Every field is optional at decode time so that partially populated
    bodies still parse; REQUIRED_FIELDS is checked field by field by the
    request validator. Values are kept exactly as sent.
    """

    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = ()

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=False,
    )

    @classmethod
    def required_aliases(cls) -> Tuple[str, ...]:
        """Wire names of the required fields, in declaration order"""
        return tuple(
            cls.model_fields[name].alias or name for name in cls.REQUIRED_FIELDS
        )


class SignUpRequest(GatewayRequest):
    """Sign-up form"""
    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = ("email", "password")

    email: Optional[str] = None
    password: Optional[str] = None


class SignInRequest(GatewayRequest):
    """Sign-in form"""
    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = ("email", "password")

    email: Optional[str] = None
    password: Optional[str] = None


class CompleteRegistrationRequest(GatewayRequest):
    """Registration completion form; unknown profile fields are kept and forwarded"""
    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = ("email", "password", "first_name", "last_name")

    model_config = ConfigDict(extra="allow")

    email: Optional[str] = None
    password: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone_number: Optional[str] = None
    street_name: Optional[str] = None
    postal_code: Optional[str] = None
    city: Optional[str] = None
    date_of_birth: Optional[str] = None

    def to_account_payload(self) -> dict:
        """Profile payload for the account service, in wire (camelCase) form"""
        return self.model_dump(by_alias=True, exclude_none=True)


class SignOutRequest(GatewayRequest):
    """Sign-out acknowledgement body"""
    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = ("user_id",)

    user_id: Optional[str] = None
