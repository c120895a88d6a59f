"""Tracker REST API client."""

from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from pvgit.models import (
    ProjectStoryGroup,
    Story,
    StoryState,
    TrackerConfig,
    validate_estimate,
)
from pvgit.utils.logger import get_logger

logger = get_logger(__name__)

STORY_FIELDS = "id,name,description,story_type,estimate,current_state,project_id,url"


class TrackerError(Exception):
    """Tracker integration error."""
    pass


class AuthError(TrackerError):
    """The tracker rejected the configured credentials."""
    pass


class NetworkError(TrackerError):
    """The tracker could not be reached."""
    pass


class ServiceError(TrackerError):
    """The tracker answered with an unexpected error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def _validation_messages(body: Any) -> List[str]:
    """Extract validation messages from a tracker error body."""
    if not isinstance(body, dict):
        return []

    messages = []
    problems = body.get("validation_errors")
    if not isinstance(problems, list):
        problems = []

    for problem in problems:
        if not isinstance(problem, dict):
            continue
        field = problem.get("field")
        text = problem.get("problem", "is invalid")
        messages.append(f"{field}: {text}" if field else str(text))

    if body.get("general_problem"):
        messages.append(str(body["general_problem"]))

    if not messages and body.get("error"):
        messages.append(str(body["error"]))

    return messages


class TrackerClient:
    """Reads and updates stories through the tracker's HTTP API."""

    def __init__(
        self,
        config: TrackerConfig,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            config: Tracker settings (token, username, projects)
            transport: Optional httpx transport, used by tests
        """
        self.config = config
        self._transport = transport
        self._http_client: Optional[httpx.Client] = None
        self._me: Optional[Dict[str, Any]] = None

    def _get_http_client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.Client(
                base_url=self.config.base_url,
                headers={
                    "X-TrackerToken": self.config.api_token or "",
                    "Content-Type": "application/json",
                },
                timeout=self.config.timeout,
                transport=self._transport,
            )
        return self._http_client

    def close(self) -> None:
        """Close HTTP client."""
        if self._http_client is not None:
            self._http_client.close()
            self._http_client = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Send a request, mapping transport and auth failures to tracker errors."""
        client = self._get_http_client()
        logger.debug(f"{method} {path}")

        try:
            response = client.request(method, path, **kwargs)
        except httpx.RequestError as exc:
            raise NetworkError(f"Cannot reach tracker: {exc}") from exc

        if response.status_code in (401, 403):
            raise AuthError(
                "Tracker rejected the API token. Run 'pv setup' to update your credentials."
            )
        return response

    def _json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise ServiceError("Invalid tracker response", response.status_code) from exc

    def _raise_for_status(self, response: httpx.Response, action: str) -> None:
        if response.is_success:
            return
        body: Any = None
        try:
            body = response.json()
        except ValueError:
            pass
        detail = "; ".join(_validation_messages(body)) or response.reason_phrase
        raise ServiceError(
            f"Failed to {action}: {response.status_code} {detail}", response.status_code
        )

    def _parse_story(self, data: Any) -> Story:
        try:
            return Story.model_validate(data)
        except ValidationError as exc:
            raise ServiceError(f"Unexpected story data from tracker: {exc}") from exc

    def me(self) -> Dict[str, Any]:
        """Return the authenticated user's profile (cached)."""
        if self._me is None:
            response = self._request("GET", "/me")
            self._raise_for_status(response, "fetch the current user")
            self._me = self._json(response)
        return self._me

    def project_name(self, project_id: int) -> str:
        """Return a project's display name."""
        response = self._request("GET", f"/projects/{project_id}", params={"fields": "name"})
        self._raise_for_status(response, f"fetch project {project_id}")
        return self._json(response).get("name", str(project_id))

    def list_my_stories(self) -> List[ProjectStoryGroup]:
        """Fetch the stories assigned to the configured user, one group per project.

        Groups follow the configured project order; stories keep the
        tracker's ordering.
        """
        groups = []
        story_filter = f"mywork:{self.config.username}"

        for project_id in self.config.project_ids:
            name = self.project_name(project_id)
            response = self._request(
                "GET",
                f"/projects/{project_id}/stories",
                params={"filter": story_filter, "fields": STORY_FIELDS},
            )
            self._raise_for_status(response, f"list stories in project {project_id}")

            stories = [self._parse_story(item) for item in self._json(response)]
            logger.debug(f"Project {project_id}: {len(stories)} stories")
            groups.append(
                ProjectStoryGroup(project_id=project_id, project_name=name, stories=stories)
            )

        return groups

    def find_story(self, story_id: int) -> Optional[Story]:
        """Look up a story by ID in each configured project.

        Returns:
            The story, or None when no configured project has it
        """
        for project_id in self.config.project_ids:
            response = self._request(
                "GET",
                f"/projects/{project_id}/stories/{story_id}",
                params={"fields": STORY_FIELDS},
            )
            if response.status_code == 404:
                continue
            self._raise_for_status(response, f"fetch story {story_id}")
            return self._parse_story(self._json(response))

        logger.debug(f"Story {story_id} not found in projects {self.config.project_ids}")
        return None

    def create_story(self, draft: Story) -> Story:
        """Create a story owned by the current user.

        Validation failures are reported on the returned story's ``errors``
        (its ``id`` stays None); they are not raised.
        """
        if draft.project_id is None:
            return draft.model_copy(update={"errors": ["project_id: is required"]})

        payload: Dict[str, Any] = {
            "name": draft.name,
            "description": draft.description,
            "story_type": draft.story_type.value,
        }
        if draft.estimate is not None:
            payload["estimate"] = draft.estimate
        person_id = self.me().get("id")
        if person_id is not None:
            payload["owner_ids"] = [person_id]

        response = self._request(
            "POST",
            f"/projects/{draft.project_id}/stories",
            params={"fields": STORY_FIELDS},
            json=payload,
        )

        errors = self._reported_errors(response)
        if errors:
            logger.info(f"Tracker rejected new story: {errors}")
            return draft.model_copy(update={"errors": errors})

        self._raise_for_status(response, "create story")
        story = self._parse_story(self._json(response))
        logger.info(f"Created story {story.id} in project {story.project_id}")
        return story

    def set_estimate(self, story: Story, points: int) -> Story:
        """Estimate a story.

        Raises:
            ValueError: If points is outside the accepted range
        """
        validate_estimate(points)
        return self._update_story(story, {"estimate": points})

    def transition_state(self, story: Story, new_state: StoryState) -> Story:
        """Move a story to a new lifecycle state."""
        return self._update_story(story, {"current_state": StoryState(new_state).value})

    def _update_story(self, story: Story, changes: Dict[str, Any]) -> Story:
        if story.id is None or story.project_id is None:
            raise ValueError("Cannot update a story that does not exist on the tracker")

        response = self._request(
            "PUT",
            f"/projects/{story.project_id}/stories/{story.id}",
            params={"fields": STORY_FIELDS},
            json=changes,
        )

        errors = self._reported_errors(response)
        if errors:
            logger.info(f"Tracker rejected update of story {story.id}: {errors}")
            return story.model_copy(update={"errors": errors})

        self._raise_for_status(response, f"update story {story.id}")
        logger.debug(f"Updated story {story.id}: {changes}")
        return self._parse_story(self._json(response))

    def _reported_errors(self, response: httpx.Response) -> List[str]:
        """Validation messages for a rejected create/update, empty otherwise."""
        if response.status_code not in (400, 422):
            return []
        try:
            body = response.json()
        except ValueError:
            return []
        return _validation_messages(body)
