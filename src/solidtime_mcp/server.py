"""
Solidtime MCP Server

This MCP server exposes the Solidtime time-tracking API as tools: start and stop
timers, record finished time entries, and manage projects, clients, tasks and
members. Built with FastMCP.
"""

import logging
from typing import List, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field
from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from solidtime_mcp.client import SolidtimeAPIError, SolidtimeClient
from solidtime_mcp.config import SolidtimeConfig
from solidtime_mcp.formatting import (
    ResponseFormat,
    render_clients,
    render_members,
    render_projects,
    render_tasks,
    render_time_entries,
)
from solidtime_mcp.timer import ActiveTimerController


logger = logging.getLogger(__name__)

SERVER_NAME = "solidtime_mcp"
DEFAULT_LIMIT = 10
MAX_LIMIT = 100
DEFAULT_PROJECT_COLOR = "#000000"


# ============================================================================
# Shared Models
# ============================================================================

class BaseToolInput(BaseModel):
    """Base model with common configuration."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra='forbid'
    )


class FormatInput(BaseToolInput):
    """Input model for list operations with format option."""
    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format: 'markdown' (default) or 'json'"
    )


# ============================================================================
# Error Handling
# ============================================================================

def _handle_api_error(action: str, e: Exception) -> str:
    """
    Render a failure as the text of a flagged tool error.

    Solidtime's own error messages are passed through unchanged; only
    transport failures get a hint added.

    Args:
        action: What was being attempted, e.g. "starting timer"
        e: Exception to format

    Returns:
        Human-readable error message
    """
    if isinstance(e, (SolidtimeAPIError, ValueError)):
        return f"Error {action}: {e}"
    if isinstance(e, httpx.TimeoutException):
        return (f"Error {action}: Request timed out. The Solidtime API is taking too "
                f"long to respond. Please try again.")
    if isinstance(e, httpx.ConnectError):
        return (f"Error {action}: Cannot connect to the Solidtime API. Please check "
                f"SOLIDTIME_BASE_URL and your network connection.")
    logger.exception("Unexpected error while %s", action)
    return f"Error {action}: {type(e).__name__}: {e}"


# ============================================================================
# Pydantic Input Models - Time Entries
# ============================================================================

class StartTimerInput(BaseToolInput):
    """Input model for starting time tracking."""
    description: Optional[str] = Field(
        default=None,
        description="Description of the work being done"
    )
    project_id: Optional[str] = Field(
        default=None,
        description="ID of the project to track time for (from solidtime_list_projects)"
    )
    task_id: Optional[str] = Field(
        default=None,
        description="ID of the task to track time for (from solidtime_list_tasks)"
    )
    tags: Optional[List[str]] = Field(
        default=None,
        description="Tag IDs to apply to the time entry"
    )
    billable: bool = Field(
        default=False,
        description="Whether this time is billable"
    )
    member_id: Optional[str] = Field(
        default=None,
        description="Member ID (uses SOLIDTIME_DEFAULT_MEMBER_ID if not provided)"
    )


class StopTimerInput(BaseToolInput):
    """Input model for stopping time tracking."""
    member_id: Optional[str] = Field(
        default=None,
        description="Member ID (uses SOLIDTIME_DEFAULT_MEMBER_ID if not provided)"
    )


class AddTimeEntryInput(BaseToolInput):
    """Input model for recording a completed time entry."""
    description: Optional[str] = Field(
        default=None,
        description="Description of the work done"
    )
    start: str = Field(
        ...,
        description=(
            "Start time in ISO 8601 format, e.g. '2025-09-25T14:00:00Z'. "
            "Times without 'Z' or an offset are read as server-local time."
        ),
        min_length=1
    )
    end: str = Field(
        ...,
        description="End time in ISO 8601 format, e.g. '2025-09-25T16:00:00Z'",
        min_length=1
    )
    project_id: Optional[str] = Field(default=None, description="ID of the project")
    task_id: Optional[str] = Field(default=None, description="ID of the task")
    tags: Optional[List[str]] = Field(default=None, description="Tag IDs to apply")
    billable: bool = Field(default=False, description="Whether this time is billable")
    member_id: str = Field(
        ...,
        description="Member ID (required - use solidtime_list_members to find valid IDs)",
        min_length=1
    )


class ListTimeEntriesInput(FormatInput):
    """Input model for listing time entries with optional filters."""
    member_id: Optional[str] = Field(default=None, description="Filter by member ID")
    project_id: Optional[str] = Field(default=None, description="Filter by project ID")
    client_id: Optional[str] = Field(default=None, description="Filter by client ID")
    task_id: Optional[str] = Field(default=None, description="Filter by task ID")
    active: Optional[bool] = Field(
        default=None,
        description="true for running entries only, false for finished ones"
    )
    limit: int = Field(
        default=DEFAULT_LIMIT,
        description="Number of entries to return",
        ge=1,
        le=MAX_LIMIT
    )
    offset: int = Field(default=0, description="Number of entries to skip", ge=0)


class DeleteTimeEntryInput(BaseToolInput):
    """Input model for deleting a time entry."""
    entry_id: str = Field(..., description="ID of the time entry to delete", min_length=1)


# ============================================================================
# Pydantic Input Models - Projects, Clients, Tasks
# ============================================================================

class ListProjectsInput(FormatInput):
    is_archived: Optional[bool] = Field(
        default=None,
        description="true for archived projects only, false for active ones"
    )


class CreateProjectInput(BaseToolInput):
    """Input model for creating a project."""
    name: str = Field(..., description="Name of the project", min_length=1, max_length=255)
    color: str = Field(
        default=DEFAULT_PROJECT_COLOR,
        description="Color of the project in hex format, e.g. '#ef5350'",
        pattern=r'^#[0-9a-fA-F]{6}$'
    )
    client_id: Optional[str] = Field(default=None, description="ID of the client")
    billable: Optional[bool] = Field(default=None, description="Whether the project is billable")
    billable_rate: Optional[int] = Field(
        default=None,
        description="Billable rate in cents per hour",
        ge=0
    )
    is_public: bool = Field(default=False, description="Whether the project is public")
    estimated_time: Optional[int] = Field(
        default=None,
        description="Estimated time in seconds",
        ge=0
    )


class UpdateProjectInput(BaseToolInput):
    """Input model for updating a project. Only given fields change."""
    project_id: str = Field(..., description="ID of the project", min_length=1)
    name: Optional[str] = Field(default=None, description="New name", min_length=1, max_length=255)
    color: Optional[str] = Field(
        default=None,
        description="New color in hex format",
        pattern=r'^#[0-9a-fA-F]{6}$'
    )
    client_id: Optional[str] = Field(default=None, description="New client ID")
    billable: Optional[bool] = Field(default=None, description="Whether the project is billable")
    billable_rate: Optional[int] = Field(default=None, description="Rate in cents per hour", ge=0)
    is_archived: Optional[bool] = Field(default=None, description="Archive or unarchive")
    is_public: Optional[bool] = Field(default=None, description="Whether the project is public")
    estimated_time: Optional[int] = Field(default=None, description="Estimate in seconds", ge=0)


class ProjectIdInput(BaseToolInput):
    project_id: str = Field(..., description="ID of the project", min_length=1)


class ListClientsInput(FormatInput):
    is_archived: Optional[bool] = Field(
        default=None,
        description="true for archived clients only, false for active ones"
    )


class CreateClientInput(BaseToolInput):
    name: str = Field(..., description="Name of the client", min_length=1, max_length=255)


class UpdateClientInput(BaseToolInput):
    client_id: str = Field(..., description="ID of the client", min_length=1)
    name: Optional[str] = Field(default=None, description="New name", min_length=1, max_length=255)
    is_archived: Optional[bool] = Field(default=None, description="Archive or unarchive")


class ClientIdInput(BaseToolInput):
    client_id: str = Field(..., description="ID of the client", min_length=1)


class ListTasksInput(FormatInput):
    project_id: str = Field(..., description="ID of the project", min_length=1)
    is_done: Optional[bool] = Field(default=None, description="Filter by completion status")


class CreateTaskInput(BaseToolInput):
    project_id: str = Field(..., description="ID of the project", min_length=1)
    name: str = Field(..., description="Name of the task", min_length=1, max_length=255)
    is_done: bool = Field(default=False, description="Whether the task is completed")


class UpdateTaskInput(BaseToolInput):
    project_id: str = Field(..., description="ID of the project the task belongs to", min_length=1)
    task_id: str = Field(..., description="ID of the task", min_length=1)
    name: Optional[str] = Field(default=None, description="New name", min_length=1, max_length=255)
    is_done: Optional[bool] = Field(default=None, description="Mark done or reopen")


class HelpInput(BaseToolInput):
    topic: Optional[str] = Field(
        default=None,
        description="Help topic: 'setup', 'time-entry', 'troubleshooting', or empty for general help"
    )


# ============================================================================
# Help Text
# ============================================================================

GENERAL_HELP = """
# Solidtime MCP Server Help

## Available Tools:
- **solidtime_start_timer**: Start tracking time (stops any running timer first)
- **solidtime_stop_timer**: Stop current time tracking
- **solidtime_add_time_entry**: Add a completed time entry
- **solidtime_list_time_entries**: List recent time entries
- **solidtime_delete_time_entry**: Delete a time entry
- **solidtime_list_projects** / **solidtime_create_project** / **solidtime_update_project** / **solidtime_delete_project**
- **solidtime_list_clients** / **solidtime_create_client** / **solidtime_update_client** / **solidtime_delete_client**
- **solidtime_list_tasks** / **solidtime_create_task** / **solidtime_update_task**
- **solidtime_list_members**: List all organization members
- **solidtime_get_current_member**: Show the member that owns the API token
- **solidtime_get_organization**: Show the configured organization

For specific help, use solidtime_help with topic "setup", "time-entry", or "troubleshooting"
"""

SETUP_HELP = """
# Setup Instructions

## Environment Variables:
1. **SOLIDTIME_BASE_URL**: Your Solidtime instance URL (e.g., http://localhost:8734)
2. **SOLIDTIME_API_TOKEN**: Personal access token from Solidtime (required)
3. **SOLIDTIME_ORGANIZATION_ID**: Your organization ID (required)
4. **SOLIDTIME_DEFAULT_MEMBER_ID**: Your member ID in the organization (used by the timer tools)
5. **SOLIDTIME_LOG_LEVEL**: Logging level written to stderr (default INFO)

## Getting These Values:

### API Token:
1. Log into Solidtime
2. Go to Settings > Personal Access Tokens
3. Create a new token with all scopes

### Organization ID:
1. In Solidtime, go to Organizations
2. Find your organization ID in the URL or settings

### Member ID:
1. Run solidtime_get_current_member
2. Or check the Members section in your organization settings
"""

TIME_ENTRY_HELP = """
# Adding Time Entries

## Requirements:

1. **Date Format**: ISO 8601, ideally in UTC
   - Correct: "2025-09-25T14:00:00Z"
   - Also accepted: "2025-09-25T16:00:00+02:00" (converted to UTC)
   - Without a zone, "2025-09-25T14:00:00" is read as server-local time

2. **Required Fields**:
   - **start**: Start time (ISO 8601)
   - **end**: End time (ISO 8601)
   - **member_id**: Must be a valid member ID (use solidtime_list_members)

3. **Optional Fields**:
   - **description**: What you worked on
   - **project_id**: Link to a specific project
   - **task_id**: Link to a specific task
   - **tags**: List of tag IDs
   - **billable**: true or false (defaults to false)

## Example:
- solidtime_add_time_entry(start: "2025-09-25T14:00:00Z", end: "2025-09-25T16:00:00Z", member_id: "your-member-id", billable: true, project_id: "your-project-id", description: "Worked on feature X")

## Common Errors:
- **422 Error**: Check date format and member_id
- **401 Error**: API token is invalid or expired
"""

TROUBLESHOOTING_HELP = """
# Troubleshooting Common Issues

## Error 401 (Unauthorized):
- Your API token is invalid or expired
- Solution: Generate a new token in Solidtime settings

## Error 422 (Validation Error):
For time entries:
- Date format must be: "YYYY-MM-DDTHH:mm:ssZ"
- member_id must exist in your organization
- end must not be before start

## Error 404 (Not Found):
- Organization ID is wrong
- Project/Task/Client ID doesn't exist
- Member ID is invalid

## Checking Your Setup:
1. Test authentication: solidtime_get_organization()
2. If that works, your token and organization ID are correct
3. For timers, make sure SOLIDTIME_DEFAULT_MEMBER_ID matches solidtime_get_current_member()

## Two timers running:
Starting a timer stops the running one first, but the two steps are separate
requests. If two timers were started at the same moment (or from the web UI),
use solidtime_list_time_entries with active=true and stop the extra one.
"""

HELP_TOPICS = {
    "general": GENERAL_HELP,
    "setup": SETUP_HELP,
    "time-entry": TIME_ENTRY_HELP,
    "troubleshooting": TROUBLESHOOTING_HELP,
}


def get_help_text(topic: Optional[str] = None) -> str:
    key = (topic or "general").strip().lower() or "general"
    if key not in HELP_TOPICS:
        return f"Unknown topic: {key}. Available topics: 'setup', 'time-entry', 'troubleshooting'"
    return HELP_TOPICS[key].strip()


# ============================================================================
# Server Creation
# ============================================================================

def create_server(
    config: SolidtimeConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastMCP:
    """
    Create and configure the Solidtime MCP server.

    Args:
        config: Connection settings for one Solidtime organization
        transport: Optional httpx transport, used by tests to stand in for the API

    Returns:
        Configured FastMCP server instance
    """
    mcp = FastMCP(SERVER_NAME)
    client = SolidtimeClient(config, transport=transport)
    timer = ActiveTimerController(client, config)

    # ========================================================================
    # Tool Implementations - Time Tracking
    # ========================================================================

    @mcp.tool(
        name="solidtime_start_timer",
        annotations={
            "title": "Start Time Tracking",
            "readOnlyHint": False,
            "destructiveHint": False,
            "idempotentHint": False,
            "openWorldHint": True
        }
    )
    async def solidtime_start_timer(params: StartTimerInput) -> str:
        """
        Start tracking time for a project or task in Solidtime.

        Any timer already running for the member is stopped first. The stop and
        the start are separate requests, so two starts issued at the same time
        can leave two timers running.

        Args:
            params (StartTimerInput): Validated input parameters containing:
                - description (Optional[str]): What is being worked on
                - project_id (Optional[str]): Project to book the time on
                - task_id (Optional[str]): Task to book the time on
                - tags (Optional[List[str]]): Tag IDs
                - billable (bool): Whether the time is billable (default false)
                - member_id (Optional[str]): Member; defaults to SOLIDTIME_DEFAULT_MEMBER_ID

        Returns:
            str: "Started tracking time. Entry ID: <id>"

        Examples:
            - Use when: "Start a timer for the website redesign project"
            - Use when: "I'm starting work on the API docs"
            - Don't use when: Logging time that already happened (use solidtime_add_time_entry)

        Error Handling:
            - Fails without calling the API if no member ID is given or configured
            - Solidtime errors (401, 404, 422) are returned with their original message
        """
        try:
            entry = await timer.start(
                member_id=params.member_id,
                description=params.description,
                project_id=params.project_id,
                task_id=params.task_id,
                tags=params.tags,
                billable=params.billable,
            )
        except Exception as e:
            raise ToolError(_handle_api_error("starting timer", e)) from e

        return f"Started tracking time. Entry ID: {entry.id}"

    @mcp.tool(
        name="solidtime_stop_timer",
        annotations={
            "title": "Stop Time Tracking",
            "readOnlyHint": False,
            "destructiveHint": False,
            "idempotentHint": True,
            "openWorldHint": True
        }
    )
    async def solidtime_stop_timer(params: StopTimerInput) -> str:
        """
        Stop the currently running timer for a member in Solidtime.

        Calling this when nothing is running is not an error.

        Args:
            params (StopTimerInput): Validated input parameters containing:
                - member_id (Optional[str]): Member; defaults to SOLIDTIME_DEFAULT_MEMBER_ID

        Returns:
            str: "Stopped tracking time. Entry ID: <id>" or
                 "No active time entry found to stop"
        """
        try:
            stopped = await timer.stop(params.member_id)
        except Exception as e:
            raise ToolError(_handle_api_error("stopping timer", e)) from e

        if stopped is None:
            return "No active time entry found to stop"
        return f"Stopped tracking time. Entry ID: {stopped.id}"

    @mcp.tool(
        name="solidtime_add_time_entry",
        annotations={
            "title": "Add Time Entry",
            "readOnlyHint": False,
            "destructiveHint": False,
            "idempotentHint": False,
            "openWorldHint": True
        }
    )
    async def solidtime_add_time_entry(params: AddTimeEntryInput) -> str:
        """
        Add a completed time entry with specific start and end times.

        Does not affect a running timer. Timestamps are sent to Solidtime as UTC
        without fractional seconds; values without a zone are read as server-local time.

        Args:
            params (AddTimeEntryInput): Validated input parameters containing:
                - start (str): Start time, ISO 8601 (REQUIRED)
                - end (str): End time, ISO 8601 (REQUIRED)
                - member_id (str): Member ID (REQUIRED)
                - description, project_id, task_id, tags, billable: optional

        Returns:
            str: "Added time entry: <id> (<start> to <end>)"

        Examples:
            - Use when: "Log 2 hours on project X yesterday from 14:00 to 16:00"
            - Don't use when: Work is starting now (use solidtime_start_timer)
        """
        try:
            entry = await timer.add_completed(
                start=params.start,
                end=params.end,
                member_id=params.member_id,
                description=params.description,
                project_id=params.project_id,
                task_id=params.task_id,
                tags=params.tags,
                billable=params.billable,
            )
        except Exception as e:
            raise ToolError(_handle_api_error("adding time entry", e)) from e

        return f"Added time entry: {entry.id} ({params.start} to {params.end})"

    @mcp.tool(
        name="solidtime_list_time_entries",
        annotations={
            "title": "List Time Entries",
            "readOnlyHint": True,
            "destructiveHint": False,
            "idempotentHint": True,
            "openWorldHint": True
        }
    )
    async def solidtime_list_time_entries(params: ListTimeEntriesInput) -> str:
        """
        List recent time entries with optional filters.

        Running entries show the time elapsed so far.

        Args:
            params (ListTimeEntriesInput): Validated input parameters containing:
                - member_id, project_id, client_id, task_id (Optional[str]): Filters
                - active (Optional[bool]): true for running entries only
                - limit (int): Number of entries (default 10, max 100)
                - offset (int): Number of entries to skip
                - response_format (ResponseFormat): 'markdown' or 'json'

        Returns:
            str: One line per entry, e.g.
                 "• Writing docs - 1h 30m (completed)"
                 "• (No description) - 0h 12m (active)"
        """
        try:
            page = await client.get_time_entries(
                member_id=params.member_id,
                project_id=params.project_id,
                client_id=params.client_id,
                task_id=params.task_id,
                active=params.active,
                limit=params.limit,
                offset=params.offset,
            )
        except Exception as e:
            raise ToolError(_handle_api_error("listing time entries", e)) from e

        return render_time_entries(page.data, params.response_format)

    @mcp.tool(
        name="solidtime_delete_time_entry",
        annotations={
            "title": "Delete Time Entry",
            "readOnlyHint": False,
            "destructiveHint": True,
            "idempotentHint": True,
            "openWorldHint": True
        }
    )
    async def solidtime_delete_time_entry(params: DeleteTimeEntryInput) -> str:
        """Permanently delete a time entry by ID."""
        try:
            await client.delete_time_entry(params.entry_id)
        except Exception as e:
            raise ToolError(_handle_api_error("deleting time entry", e)) from e

        return f"Deleted time entry: {params.entry_id}"

    # ========================================================================
    # Tool Implementations - Projects
    # ========================================================================

    @mcp.tool(
        name="solidtime_list_projects",
        annotations={
            "title": "List Projects",
            "readOnlyHint": True,
            "destructiveHint": False,
            "idempotentHint": True,
            "openWorldHint": True
        }
    )
    async def solidtime_list_projects(params: ListProjectsInput) -> str:
        """
        List all available projects.

        Use this to find project IDs before starting a timer or adding an entry.

        Returns:
            str: "• <name> (ID: <id>)" per project, archived ones marked [ARCHIVED]
        """
        try:
            page = await client.get_projects(is_archived=params.is_archived)
        except Exception as e:
            raise ToolError(_handle_api_error("listing projects", e)) from e

        return render_projects(page.data, params.response_format)

    @mcp.tool(
        name="solidtime_create_project",
        annotations={
            "title": "Create Project",
            "readOnlyHint": False,
            "destructiveHint": False,
            "idempotentHint": False,
            "openWorldHint": True
        }
    )
    async def solidtime_create_project(params: CreateProjectInput) -> str:
        """
        Create a new project.

        Args:
            params (CreateProjectInput): Validated input parameters containing:
                - name (str): Project name (REQUIRED)
                - color (str): Hex color, default '#000000'
                - client_id (Optional[str]): Client the project belongs to
                - billable (Optional[bool]), billable_rate (Optional[int], cents per hour)
                - is_public (bool): default false
                - estimated_time (Optional[int]): seconds

        Returns:
            str: "Created project: <name> (ID: <id>)"
        """
        try:
            project = await client.create_project(
                name=params.name,
                color=params.color,
                client_id=params.client_id,
                billable=params.billable,
                billable_rate=params.billable_rate,
                is_public=params.is_public,
                estimated_time=params.estimated_time,
            )
        except Exception as e:
            raise ToolError(_handle_api_error("creating project", e)) from e

        return f"Created project: {project.name} (ID: {project.id})"

    @mcp.tool(
        name="solidtime_update_project",
        annotations={
            "title": "Update Project",
            "readOnlyHint": False,
            "destructiveHint": False,
            "idempotentHint": True,
            "openWorldHint": True
        }
    )
    async def solidtime_update_project(params: UpdateProjectInput) -> str:
        """Rename, recolor, archive or re-rate a project. Unset fields are left alone."""
        fields = params.model_dump(exclude={"project_id"}, exclude_none=True)
        if not fields:
            raise ToolError("Error updating project: no fields to update were given")

        try:
            project = await client.update_project(params.project_id, **fields)
        except Exception as e:
            raise ToolError(_handle_api_error("updating project", e)) from e

        status = " [ARCHIVED]" if project.is_archived else ""
        return f"Updated project: {project.name} (ID: {project.id}){status}"

    @mcp.tool(
        name="solidtime_delete_project",
        annotations={
            "title": "Delete Project",
            "readOnlyHint": False,
            "destructiveHint": True,
            "idempotentHint": True,
            "openWorldHint": True
        }
    )
    async def solidtime_delete_project(params: ProjectIdInput) -> str:
        """Permanently delete a project by ID."""
        try:
            await client.delete_project(params.project_id)
        except Exception as e:
            raise ToolError(_handle_api_error("deleting project", e)) from e

        return f"Deleted project: {params.project_id}"

    # ========================================================================
    # Tool Implementations - Clients
    # ========================================================================

    @mcp.tool(
        name="solidtime_list_clients",
        annotations={
            "title": "List Clients",
            "readOnlyHint": True,
            "destructiveHint": False,
            "idempotentHint": True,
            "openWorldHint": True
        }
    )
    async def solidtime_list_clients(params: ListClientsInput) -> str:
        """List all available clients."""
        try:
            page = await client.get_clients(is_archived=params.is_archived)
        except Exception as e:
            raise ToolError(_handle_api_error("listing clients", e)) from e

        return render_clients(page.data, params.response_format)

    @mcp.tool(
        name="solidtime_create_client",
        annotations={
            "title": "Create Client",
            "readOnlyHint": False,
            "destructiveHint": False,
            "idempotentHint": False,
            "openWorldHint": True
        }
    )
    async def solidtime_create_client(params: CreateClientInput) -> str:
        """Create a new client."""
        try:
            created = await client.create_client(params.name)
        except Exception as e:
            raise ToolError(_handle_api_error("creating client", e)) from e

        return f"Created client: {created.name} (ID: {created.id})"

    @mcp.tool(
        name="solidtime_update_client",
        annotations={
            "title": "Update Client",
            "readOnlyHint": False,
            "destructiveHint": False,
            "idempotentHint": True,
            "openWorldHint": True
        }
    )
    async def solidtime_update_client(params: UpdateClientInput) -> str:
        """Rename, archive or unarchive a client."""
        if params.name is None and params.is_archived is None:
            raise ToolError("Error updating client: no fields to update were given")

        try:
            updated = await client.update_client(
                params.client_id,
                name=params.name,
                is_archived=params.is_archived,
            )
        except Exception as e:
            raise ToolError(_handle_api_error("updating client", e)) from e

        status = " [ARCHIVED]" if updated.archived else ""
        return f"Updated client: {updated.name} (ID: {updated.id}){status}"

    @mcp.tool(
        name="solidtime_delete_client",
        annotations={
            "title": "Delete Client",
            "readOnlyHint": False,
            "destructiveHint": True,
            "idempotentHint": True,
            "openWorldHint": True
        }
    )
    async def solidtime_delete_client(params: ClientIdInput) -> str:
        """Permanently delete a client by ID."""
        try:
            await client.delete_client(params.client_id)
        except Exception as e:
            raise ToolError(_handle_api_error("deleting client", e)) from e

        return f"Deleted client: {params.client_id}"

    # ========================================================================
    # Tool Implementations - Tasks
    # ========================================================================

    @mcp.tool(
        name="solidtime_list_tasks",
        annotations={
            "title": "List Tasks",
            "readOnlyHint": True,
            "destructiveHint": False,
            "idempotentHint": True,
            "openWorldHint": True
        }
    )
    async def solidtime_list_tasks(params: ListTasksInput) -> str:
        """
        List tasks for a project.

        Returns:
            str: "• <name> (ID: <id>)" per task, finished ones marked ✓
        """
        try:
            page = await client.get_tasks(params.project_id, is_done=params.is_done)
        except Exception as e:
            raise ToolError(_handle_api_error("listing tasks", e)) from e

        return render_tasks(page.data, params.response_format)

    @mcp.tool(
        name="solidtime_create_task",
        annotations={
            "title": "Create Task",
            "readOnlyHint": False,
            "destructiveHint": False,
            "idempotentHint": False,
            "openWorldHint": True
        }
    )
    async def solidtime_create_task(params: CreateTaskInput) -> str:
        """Create a new task for a project."""
        try:
            task = await client.create_task(
                params.project_id, name=params.name, is_done=params.is_done
            )
        except Exception as e:
            raise ToolError(_handle_api_error("creating task", e)) from e

        return f"Created task: {task.name} (ID: {task.id})"

    @mcp.tool(
        name="solidtime_update_task",
        annotations={
            "title": "Update Task",
            "readOnlyHint": False,
            "destructiveHint": False,
            "idempotentHint": True,
            "openWorldHint": True
        }
    )
    async def solidtime_update_task(params: UpdateTaskInput) -> str:
        """Rename a task, or mark it done / not done."""
        if params.name is None and params.is_done is None:
            raise ToolError("Error updating task: no fields to update were given")

        try:
            task = await client.update_task(
                params.project_id,
                params.task_id,
                name=params.name,
                is_done=params.is_done,
            )
        except Exception as e:
            raise ToolError(_handle_api_error("updating task", e)) from e

        return f"Updated task: {task.name} (ID: {task.id}){' ✓' if task.is_done else ''}"

    # ========================================================================
    # Tool Implementations - Organization & Members
    # ========================================================================

    @mcp.tool(
        name="solidtime_list_members",
        annotations={
            "title": "List Members",
            "readOnlyHint": True,
            "destructiveHint": False,
            "idempotentHint": True,
            "openWorldHint": True
        }
    )
    async def solidtime_list_members(params: FormatInput) -> str:
        """
        List all members in the organization.

        Member IDs are organization-specific and differ from user IDs; use
        them for member_id in the time tracking tools.
        """
        try:
            page = await client.get_members()
        except Exception as e:
            raise ToolError(_handle_api_error("listing members", e)) from e

        return render_members(page.data, params.response_format)

    @mcp.tool(
        name="solidtime_get_current_member",
        annotations={
            "title": "Get Current Member",
            "readOnlyHint": True,
            "destructiveHint": False,
            "idempotentHint": True,
            "openWorldHint": True
        }
    )
    async def solidtime_get_current_member() -> str:
        """Show the organization member that owns the configured API token."""
        try:
            member = await client.get_current_member()
        except Exception as e:
            raise ToolError(_handle_api_error("getting current member", e)) from e

        lines = [f"**Member ID**: {member.id}"]
        if member.name:
            lines.append(f"**Name**: {member.name}")
        if member.email:
            lines.append(f"**Email**: {member.email}")
        if member.role:
            lines.append(f"**Role**: {member.role}")
        if config.default_member_id and config.default_member_id != member.id:
            lines.append("")
            lines.append(
                f"_Note: SOLIDTIME_DEFAULT_MEMBER_ID is set to {config.default_member_id}, "
                f"which is a different member._"
            )
        return "\n".join(lines)

    @mcp.tool(
        name="solidtime_get_organization",
        annotations={
            "title": "Get Organization",
            "readOnlyHint": True,
            "destructiveHint": False,
            "idempotentHint": True,
            "openWorldHint": True
        }
    )
    async def solidtime_get_organization() -> str:
        """Show the configured organization. Also a quick check that the token works."""
        try:
            org = await client.get_organization()
        except Exception as e:
            raise ToolError(_handle_api_error("getting organization", e)) from e

        lines = [f"# {org.name}", "", f"**ID**: {org.id}"]
        if org.currency:
            lines.append(f"**Currency**: {org.currency}")
        return "\n".join(lines)

    # ========================================================================
    # Help
    # ========================================================================

    @mcp.tool(
        name="solidtime_help",
        annotations={
            "title": "Get Help",
            "readOnlyHint": True,
            "destructiveHint": False,
            "idempotentHint": True,
            "openWorldHint": False
        }
    )
    async def solidtime_help(params: HelpInput) -> str:
        """Get help and instructions for using the Solidtime tools."""
        return get_help_text(params.topic)

    return mcp
