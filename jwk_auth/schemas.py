"""Wire models for the provider's published key set."""

from pydantic import BaseModel, ConfigDict


class Jwk(BaseModel):
    """One RSA public key record as published by the provider."""

    model_config = ConfigDict(frozen=True)

    kid: str
    kty: str
    alg: str
    use: str
    n: str
    e: str


class KeyResponse(BaseModel):
    """JWKS document returned by the key endpoint."""

    keys: list[Jwk]
