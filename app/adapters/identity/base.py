from abc import ABC, abstractmethod


class AbstractIdentityVerifier(ABC):
	"""Interface for services that turn a credential into a caller identity."""

	@abstractmethod
	async def verify(self, credential: str) -> str:
		"""Resolve a credential to a stable caller identity.

		Args:
			credential: Raw bearer token, API key or session cookie value.

		Returns:
			str: Identity used to namespace rate limits and history records.

		Raises:
			AuthenticationAppError: If the credential is invalid or expired.
		"""
		...
