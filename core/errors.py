"""
core/errors.py -- Domain error taxonomy for NodeVault.

Every failure the vault and lifecycle raise is a VaultError subclass. Each
class carries the HTTP status and machine-readable code the API layer uses
when it renders the error envelope, so route handlers never map errors by
hand.

  InvalidInputError   422  malformed input, raised before any side effect
  AuthenticationError 401  bad credentials or token (one generic message)
  ConflictError       409  duplicate identity key or node registration
  CryptoError         400  decryption failure, malformed blob, corrupt hash
  NotFoundError       404  resource missing after authentication succeeded
  BadRequestError     400  operation not valid in the account's state
  ProvisioningError   502  the remote provisioning service failed

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, node/, or vault/.
"""

from __future__ import annotations


class VaultError(Exception):
    """Base class for all errors raised by NodeVault."""

    status_code: int = 500
    code: str = "internal_error"
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(VaultError):
    status_code = 422
    code = "validation_error"
    default_message = "Request validation failed."


class AuthenticationError(VaultError):
    """Bad credentials or session token.

    The message is deliberately uniform: callers must not be able to tell an
    unknown identity key from a wrong password.
    """

    status_code = 401
    code = "bad_credentials"
    default_message = "Invalid credentials."


class ConflictError(VaultError):
    status_code = 409
    code = "conflict"
    default_message = "The resource already exists."


class CryptoError(VaultError):
    """Decryption or hash verification could not be completed.

    Raised with the same message whether the blob was not base64, was too
    short, or failed authentication, so the error is not a decryption oracle.
    """

    status_code = 400
    code = "crypto_error"
    default_message = "Unable to decrypt the supplied secret."


class NotFoundError(VaultError):
    status_code = 404
    code = "not_found"
    default_message = "Resource not found."


class BadRequestError(VaultError):
    status_code = 400
    code = "bad_request"
    default_message = "The request cannot be completed in the current state."


class ProvisioningError(VaultError):
    """The remote node-provisioning service failed. Never retried here."""

    status_code = 502
    code = "provisioning_error"
    default_message = "The node provisioning service is unavailable."
