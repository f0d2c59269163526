"""Pydantic schemas for image endpoints."""

from pydantic import BaseModel, Field

from image_variants.services.image.variants import DeletedImage, ImageLocation

SUCCESS_MESSAGE = "Success"


class ImageResponse(BaseModel):
    """Location of an original or variant."""

    id: str = Field(..., description="Image identifier")
    url: str = Field(..., description="Location of the stored object")
    message: str = Field(SUCCESS_MESSAGE, description="Outcome message")

    @classmethod
    def from_location(cls, location: ImageLocation) -> "ImageResponse":
        return cls(id=location.id, url=location.url)


class DeleteImageResponse(BaseModel):
    """Outcome of deleting an image with all its variants."""

    id: str = Field(..., description="Image identifier")
    message: str = Field(SUCCESS_MESSAGE, description="Outcome message")

    @classmethod
    def from_deleted(cls, deleted: DeletedImage) -> "DeleteImageResponse":
        return cls(id=deleted.id)
