# controller.py
"""
Session state machine for one user.

    IDLE --upload--> LOADING --contacts--> SUCCESS
                             --none------> ERROR  (no contacts found)
                             --failure---> ERROR  (fixed failure message)
    any  --reset---> IDLE

Uploads are ignored while LOADING. Every upload and every reset advances a
generation counter; a pipeline result is applied only if its generation is
still current, so a reset during LOADING discards the late result.
"""
import logging

from config import Settings
from graph import create_graph
from models import AppState, ImageUpload, Phase
from ocr import FAILURE_MESSAGE, ContactExtractor, ExtractionError, OpenAIVisionEndpoint

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Contacts extracted successfully!"
NO_CONTACTS_MESSAGE = "No contacts were found in the image."


class ContactController:
    def __init__(self, extractor: ContactExtractor):
        self.extractor = extractor
        self._graph = create_graph(extractor)
        self._state = AppState()
        self._generation = 0

    @classmethod
    def from_settings(cls, settings: Settings) -> "ContactController":
        endpoint = OpenAIVisionEndpoint.from_settings(settings)
        return cls(ContactExtractor(endpoint))

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_loading(self) -> bool:
        return self._state.phase is Phase.LOADING

    @property
    def can_upload(self) -> bool:
        return not self.is_loading

    @property
    def can_export(self) -> bool:
        return self._state.phase is Phase.SUCCESS and bool(self._state.contacts)

    async def upload(self, image: ImageUpload) -> bool:
        """Run encode + extract for ``image``. Returns False if the upload was ignored."""
        if self.is_loading:
            logger.info("Upload of %s ignored: extraction already in progress", image.name)
            return False

        self._generation += 1
        generation = self._generation
        self._state = AppState(phase=Phase.LOADING, image=image)
        logger.info("Extracting contacts from %s (%s, %d bytes)", image.name, image.media_type, image.size)

        try:
            result = await self._graph.ainvoke({"image": image})
            contacts = tuple(result.get("contacts") or ())
        except ExtractionError as e:
            logger.warning("Extraction failed for %s: %s", image.name, e)
            outcome = AppState(phase=Phase.ERROR, image=image, message=e.user_message)
        except Exception:
            logger.exception("Unexpected failure while processing %s", image.name)
            outcome = AppState(phase=Phase.ERROR, image=image, message=FAILURE_MESSAGE)
        else:
            if contacts:
                outcome = AppState(phase=Phase.SUCCESS, image=image, contacts=contacts, message=SUCCESS_MESSAGE)
            else:
                outcome = AppState(phase=Phase.ERROR, image=image, message=NO_CONTACTS_MESSAGE)

        if generation != self._generation:
            logger.info("Discarding result for %s: session was reset", image.name)
            return True

        self._state = outcome
        return True

    def reject(self, name: str, error: Exception) -> bool:
        """An upload that could not even be read: straight to ERROR, nothing kept."""
        if self.is_loading:
            return False
        logger.warning("Could not read %s: %s", name, error)
        self._generation += 1
        self._state = AppState(phase=Phase.ERROR, message=FAILURE_MESSAGE)
        return True

    def reset(self) -> None:
        self._generation += 1
        self._state = AppState()
        logger.debug("Session reset (generation %d)", self._generation)
