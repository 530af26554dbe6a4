"""Request payload models for the control API."""

from typing import List, Literal, Optional

from pydantic import ConfigDict, Field

from assistant_gateway.core.models import ApiModel


# Task schemas
class TaskRequest(ApiModel):
    task: Optional[str] = Field(None, description="Task description")
    images: Optional[List[str]] = Field(None, description="Data-URL encoded images")


class MessageRequest(ApiModel):
    message: Optional[str] = Field(None, description="Message text for the active task")
    images: Optional[List[str]] = Field(None, description="Data-URL encoded images")


class TaskResumeRequest(ApiModel):
    task_id: str = Field(..., description="ID of the task to resume")
    feedback: Optional[str] = Field(None, description="Feedback sent once the task resumes")
    images: Optional[List[str]] = Field(None, description="Images sent with the feedback")


class TaskCancelRequest(ApiModel):
    task_id: str = Field(..., description="ID of the task to cancel")
    reason: Optional[str] = Field(None, description="Reason for cancellation")


class TaskDeleteRequest(ApiModel):
    task_id: str = Field(..., description="ID of the task to delete")


class TaskExportRequest(ApiModel):
    task_id: str = Field(..., description="ID of the task to export")
    format: Literal["json", "markdown"] = Field("json", description="Export format")


class CustomInstructionsRequest(ApiModel):
    value: str = Field(..., description="Custom instructions text")


# UI schemas
class ViewRequest(ApiModel):
    view: Literal["history", "chat"]
    show_announcement: Optional[bool] = None


class MessageDisplayRequest(ApiModel):
    message_id: int
    expanded: bool


class ScrollRequest(ApiModel):
    is_at_bottom: bool
    show_scroll_to_bottom: Optional[bool] = Field(
        None, description="Defaults to the inverse of isAtBottom"
    )


# Media schemas
class ImageUploadRequest(ApiModel):
    images: List[str] = Field(..., description="Data-URL encoded images to add to the selection")


class ScreenshotRequest(ApiModel):
    type: Literal["vscode", "webpage"]
    url: Optional[str] = None
    selector: Optional[str] = None
    full_page: bool = False
    encoding: Literal["base64", "binary"] = "base64"
    quality: Optional[int] = Field(None, ge=0, le=100)


# Configuration schemas
class ConfigurationRequest(ApiModel):
    """Partial configuration update; unknown provider keys are passed through."""

    model_config = ConfigDict(extra="allow")

    api_provider: Optional[str] = None
    api_model_id: Optional[str] = None
    api_key: Optional[str] = None
    anthropic_base_url: Optional[str] = None
    open_router_api_key: Optional[str] = None
    open_router_model_id: Optional[str] = None
    aws_access_key: Optional[str] = None
    aws_secret_key: Optional[str] = None
    aws_session_token: Optional[str] = None
    aws_region: Optional[str] = None
    vertex_project_id: Optional[str] = None
    vertex_region: Optional[str] = None
    open_ai_base_url: Optional[str] = None
    open_ai_api_key: Optional[str] = None
    open_ai_model_id: Optional[str] = None
    ollama_model_id: Optional[str] = None
    ollama_base_url: Optional[str] = None
    gemini_api_key: Optional[str] = None
    open_ai_native_api_key: Optional[str] = None
    azure_api_version: Optional[str] = None


# Editor schemas
class EditorDiffRequest(ApiModel):
    original: str
    modified: str
    path: Optional[str] = None


# Settings schemas
class ResetOptions(ApiModel):
    history: bool = False
    configuration: bool = False
    custom_instructions: bool = False
    all_: bool = Field(False, alias="all")

    def selected(self) -> List[str]:
        """Flags in effect; ``all`` implies every other flag."""
        flags = {
            "history": self.history,
            "configuration": self.configuration,
            "customInstructions": self.custom_instructions,
        }
        return [name for name, on in flags.items() if on or self.all_]


class ResetStateRequest(ApiModel):
    reset_options: ResetOptions


class DebugOptions(ApiModel):
    log_level: Optional[Literal["debug", "info", "warn", "warning", "error"]] = None
    metrics: Optional[bool] = None
    performance: Optional[bool] = None
    api_trace: Optional[bool] = None


class DebugOptionsRequest(ApiModel):
    options: DebugOptions
