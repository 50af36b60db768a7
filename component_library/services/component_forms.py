"""
Create and edit forms for catalog components.

A form owns its field values and tag editor while it is open. Submitting
talks to the backend gateway; a failed submit leaves every field as the user
left it so they can simply try again.
"""

import mimetypes
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterable, Optional

import pydantic
from rich.console import Console

from config.settings import UploadConfig, config
from component_library.errors import CatalogError, ValidationError
from component_library.gateway.base import BackendGateway
from component_library.transformers import (
    Component,
    ComponentDraft,
    ComponentUpdate,
    describe_validation_error,
)
from component_library.utils.tag_editor import TagEditor

console = Console()


@dataclass
class ImageFile:
    """An image picked by the user, held in memory until submit."""

    file_name: str
    data: bytes
    content_type: Optional[str] = None

    def __post_init__(self):
        if not self.content_type:
            self.content_type = mimetypes.guess_type(self.file_name)[0]

    @property
    def size(self) -> int:
        return len(self.data)

    def to_dict(self) -> dict:
        return {
            "file_name": self.file_name,
            "size": self.size,
            "content_type": self.content_type,
        }


class ComponentForm:
    """Fields and submit bookkeeping shared by the create and edit forms."""

    kind = "component"

    def __init__(
        self,
        gateway: BackendGateway,
        name: str = "",
        code: str = "",
        tags: Optional[Iterable[str]] = None,
        vocabulary: Optional[Iterable[str]] = None,
    ):
        self.gateway = gateway
        self.name = name
        self.code = code
        self.tags = TagEditor(tags=tags, vocabulary=vocabulary)
        # True while a submit is in flight; the submit button is disabled
        self.busy = False
        self.error: Optional[str] = None

    def set_fields(self, name: Optional[str] = None, code: Optional[str] = None) -> None:
        """Record text typed into the name/code inputs. None leaves a field alone."""
        if name is not None:
            self.name = name
        if code is not None:
            self.code = code

    def _check_required(self) -> None:
        missing = []
        if not self.name.strip():
            missing.append("name")
        if not self.code.strip():
            missing.append("code")
        if missing:
            raise ValidationError(f"Component {' and '.join(missing)} required")

    @contextmanager
    def _submitting(self):
        """Mark the form busy for the duration of a submit and record any error."""
        self.busy = True
        self.error = None
        try:
            yield
        except CatalogError as e:
            self.error = e.message
            raise
        finally:
            self.busy = False

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "name": self.name,
            "code": self.code,
            "tags": self.tags.to_dict(),
            "busy": self.busy,
            "error": self.error,
        }


class CreateComponentForm(ComponentForm):
    """
    Form for adding a new component.

    Needs name, code, a preview image, and optional tags. The image is
    uploaded first; its public URL then goes into the inserted row.
    """

    kind = "create"

    def __init__(
        self,
        gateway: BackendGateway,
        vocabulary: Optional[Iterable[str]] = None,
        upload_config: Optional[UploadConfig] = None,
    ):
        super().__init__(gateway, vocabulary=vocabulary)
        self.upload_config = upload_config or config.upload
        self.file: Optional[ImageFile] = None

    @property
    def max_image_mb(self) -> float:
        return self.upload_config.max_image_bytes / (1024 * 1024)

    def select_file(self, file: ImageFile) -> None:
        """
        Accept an image picked by the user.

        Oversized or non-image files are refused right here. The previous
        selection (if any) is kept and nothing is uploaded.

        Raises:
            ValidationError: file too large or not an image
        """
        if file.size > self.upload_config.max_image_bytes:
            self.error = f"Image size should be less than {self.max_image_mb:g}MB"
            raise ValidationError(self.error)

        content_type = file.content_type or ""
        if not content_type.startswith(self.upload_config.allowed_content_prefix):
            self.error = "Please select an image file"
            raise ValidationError(self.error)

        self.file = file
        self.error = None

    def submit(self) -> Component:
        """
        Upload the image, insert the component, and reset the form.

        Raises:
            CatalogError: on validation, upload, or insert failure. The form
                keeps its values so the user can retry.
        """
        with self._submitting():
            if self.file is None:
                raise ValidationError("Please select an image")
            self._check_required()

            image_url = self.gateway.upload_image(
                self.file.data, self.file.file_name, self.file.content_type
            )

            try:
                draft = ComponentDraft(
                    name=self.name,
                    code=self.code,
                    image_url=image_url,
                    tags=self.tags.tags,
                )
            except pydantic.ValidationError as e:
                raise ValidationError(describe_validation_error(e)) from e

            try:
                component = self.gateway.insert_component(draft)
            except CatalogError:
                # Known gap: nothing removes an image whose row never got inserted
                console.print(
                    f"[yellow]Warning: image left without a component: {image_url}[/yellow]"
                )
                raise

        self.reset()
        return component

    def reset(self) -> None:
        self.name = ""
        self.code = ""
        self.file = None
        self.tags.clear()
        self.error = None

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["file"] = self.file.to_dict() if self.file else None
        data["max_image_mb"] = self.max_image_mb
        return data


class EditComponentForm(ComponentForm):
    """Form for changing the name, code, and tags of an existing component."""

    kind = "edit"

    def __init__(
        self,
        gateway: BackendGateway,
        component: Component,
        vocabulary: Optional[Iterable[str]] = None,
    ):
        super().__init__(
            gateway,
            name=component.name,
            code=component.code,
            tags=component.tags,
            vocabulary=vocabulary,
        )
        self.component_id = component.id

    def submit(self) -> Component:
        """
        Send name/code/tags as a partial update.

        Raises:
            CatalogError: on validation or backend failure; edits are kept
        """
        with self._submitting():
            self._check_required()
            try:
                fields = ComponentUpdate(
                    name=self.name, code=self.code, tags=self.tags.tags
                )
            except pydantic.ValidationError as e:
                raise ValidationError(describe_validation_error(e)) from e

            return self.gateway.update_component(self.component_id, fields)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["component_id"] = self.component_id
        return data
