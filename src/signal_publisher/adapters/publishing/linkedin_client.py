"""LinkedIn UGC Posts API client."""

import logging
from typing import Any, Optional

import httpx

from signal_publisher.core import HealthReport, HealthStatus, PostContent, PublishReceipt, PublishTarget
from signal_publisher.core.errors import AuthError, ForbiddenError, PipelineError, TransportError

logger = logging.getLogger(__name__)


class LinkedInClient(PublishTarget):
    """Publish member posts through the UGC Posts API.

    Posting requires an OAuth token with the ``w_member_social`` scope and
    the author's person URN.
    """

    def __init__(
        self,
        access_token: Optional[str],
        person_urn: Optional[str],
        timeout: float = 15.0,
        api_base: str = "https://api.linkedin.com/v2",
    ) -> None:
        self.access_token = access_token
        self.person_urn = person_urn
        self.timeout = timeout
        self.api_base = api_base

    @property
    def has_credentials(self) -> bool:
        return bool(self.access_token and self.person_urn)

    async def post(self, content: PostContent) -> PublishReceipt:
        if not self.has_credentials:
            raise AuthError("LinkedIn credentials not configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.api_base}/ugcPosts",
                    headers=self._get_headers(),
                    json=self.build_payload(content),
                )
        except httpx.HTTPError as e:
            raise TransportError(f"LinkedIn publish: {e}") from e

        self._check(response)

        post_id = self._post_id(response)
        if not post_id:
            raise TransportError("LinkedIn publish: response carried no post id")
        return PublishReceipt(post_id=post_id, url=f"https://www.linkedin.com/feed/update/{post_id}/")

    def build_payload(self, content: PostContent) -> dict[str, Any]:
        """Build the UGC share payload, attaching the image when one was selected."""
        image = content.image
        has_image = bool(image and image.url)

        share: dict[str, Any] = {
            "shareCommentary": {"text": content.text},
            "shareMediaCategory": "IMAGE" if has_image else "NONE",
        }
        if has_image:
            # LinkedIn expects an uploaded asset URN here; the image URL is passed through as-is
            share["media"] = [
                {
                    "status": "READY",
                    "description": {"text": image.alt or ""},
                    "media": image.url,
                    "title": {"text": content.topic or "LinkedIn Post"},
                }
            ]

        return {
            "author": self.person_urn,
            "lifecycleState": "PUBLISHED",
            "specificContent": {"com.linkedin.ugc.ShareContent": share},
            "visibility": {"com.linkedin.ugc.MemberNetworkVisibility": "PUBLIC"},
        }

    def _get_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
            "X-Restli-Protocol-Version": "2.0.0",
        }

    @staticmethod
    def _post_id(response: httpx.Response) -> Optional[str]:
        try:
            data = response.json()
        except ValueError:
            data = {}
        post_id = data.get("id") if isinstance(data, dict) else None
        return post_id or response.headers.get("x-restli-id")

    @staticmethod
    def _check(response: httpx.Response) -> None:
        status = response.status_code
        if 200 <= status < 300:
            return
        if status == 401:
            raise AuthError("LinkedIn authentication failed - token may be expired")
        if status == 403:
            raise ForbiddenError("LinkedIn API permissions insufficient - requires w_member_social scope")
        raise TransportError(f"LinkedIn publish: HTTP {status}")

    async def health_check(self) -> HealthReport:
        if not self.has_credentials:
            return HealthReport(HealthStatus.DEGRADED, "LinkedIn credentials not configured")
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(f"{self.api_base}/me", headers=self._get_headers())
            self._check(response)
        except httpx.HTTPError as e:
            return HealthReport(HealthStatus.UNHEALTHY, f"LinkedIn unreachable: {e}")
        except PipelineError as e:
            return HealthReport(HealthStatus.UNHEALTHY, str(e))
        return HealthReport(HealthStatus.HEALTHY, "LinkedIn API connected")
