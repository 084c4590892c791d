import structlog

from mediagate.core.core import Service
from mediagate.core.modules.access.credentials import RequestCredentials
from mediagate.core.modules.access.models import AccessDecision, AccessPolicy, AccessVia, DenyReason
from mediagate.core.modules.token.models import StreamingToken

logger = structlog.get_logger(__name__)


class AccessService(Service):
    """Decides whether a request may reach a resource under a given policy.

    Store failures propagate to the caller; they are never turned into a denial.
    """

    async def authorize(
        self, policy: AccessPolicy, credentials: RequestCredentials, video_id: str | None = None
    ) -> AccessDecision:
        match policy:
            case AccessPolicy.SESSION:
                decision = await self.check_session(credentials)
            case AccessPolicy.TOKEN:
                decision = self.check_token(credentials, video_id)
            case AccessPolicy.SESSION_OR_TOKEN:
                decision = await self.check_session_or_token(credentials, video_id)

        if not decision.allow:
            logger.info("access_denied", policy=policy, video_id=video_id, reason=decision.deny_reason)
        return decision

    async def check_session(self, credentials: RequestCredentials) -> AccessDecision:
        if not credentials.session_id:
            return AccessDecision.denied(DenyReason.NO_SESSION)
        session = await self.core.services.session.validate_session(credentials.session_id)
        if session is None:
            return AccessDecision.denied(DenyReason.INVALID_SESSION)
        return AccessDecision.granted(session.subject_id, AccessVia.SESSION)

    def check_token(self, credentials: RequestCredentials, video_id: str | None) -> AccessDecision:
        if not credentials.token or video_id is None:
            return AccessDecision.denied(DenyReason.NO_TOKEN)
        result = self.core.services.token.validate_token(
            credentials.token,
            video_id,
            request_ip=credentials.client.ip_address,
            request_user_agent=credentials.client.user_agent,
        )
        if not result.valid or result.claims is None:
            return AccessDecision.denied(DenyReason(result.reason))
        token = StreamingToken(value=credentials.token, claims=result.claims)
        return AccessDecision.granted(result.claims.sub, AccessVia.TOKEN, token)

    async def check_session_or_token(self, credentials: RequestCredentials, video_id: str | None) -> AccessDecision:
        """A valid token wins; otherwise a valid session; otherwise the most specific denial."""
        token_decision = None
        if credentials.token:
            token_decision = self.check_token(credentials, video_id)
            if token_decision.allow:
                return token_decision

        session_decision = await self.check_session(credentials)
        if session_decision.allow:
            return session_decision

        if token_decision is not None:
            return token_decision
        if session_decision.deny_reason == DenyReason.INVALID_SESSION:
            return session_decision
        return AccessDecision.denied(DenyReason.NO_CREDENTIALS)
