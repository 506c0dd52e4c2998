from __future__ import annotations


class CompositorError(Exception):
    """Base class for compositing failures.

    ``user_message`` is the single human-readable line surfaced to callers;
    ``code`` is a stable identifier for API clients.
    """

    code = "compositor_error"
    user_message = "Outfit processing failed. Please try again."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.user_message)


class NoItemsProvided(CompositorError):
    code = "no_items"
    user_message = "Nothing to composite. Select at least one clothing item."


class ItemLoadFailure(CompositorError):
    """A single item could not be loaded or processed. Recovered per item."""

    code = "item_load_failed"
    user_message = "A clothing item image could not be processed."


class ImageNotFound(ItemLoadFailure):
    code = "image_not_found"


class ImageDecodeFailure(ItemLoadFailure):
    code = "image_decode_failed"


class UnknownCategory(ItemLoadFailure):
    code = "unknown_category"


class AllItemsFailed(CompositorError):
    code = "all_items_failed"
    user_message = "None of the selected items could be processed. Please try again."


class CompositeOutOfMemory(CompositorError):
    code = "out_of_memory"
    user_message = "Not enough memory to build the outfit image. Try fewer or smaller images."


class SaveFailure(CompositorError):
    code = "save_failed"
    user_message = "Could not save the outfit image. Check available storage."
