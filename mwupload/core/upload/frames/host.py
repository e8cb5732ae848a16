"""
Headless frame host.

Models the part of a browser page that the frame upload relies on: hidden
forms and named frames attached to a document, load/error events on the
frames, and form submission that navigates the target frame to the
response of a multipart POST.
"""
import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Set, Tuple, Union

import aiohttp

from .document import BLANK_URL, FrameDocument
from ..models import FileInput
from ...api.config import ProxyConfig
from ...api.events import EventEmitter


class Frame:
    """
    A named frame.

    Emits ``load`` (with the frame) each time a document finishes loading,
    and ``error`` (with a detail string) when loading fails.
    """

    def __init__(self, name: str):
        self.name = name
        self.src = BLANK_URL
        self.hidden = False
        self.document: Optional[FrameDocument] = None
        self.load_count = 0
        self._events = EventEmitter()

    def on(self, event: str, callback: Callable) -> 'Frame':
        self._events.on(event, callback)
        return self

    def once(self, event: str, callback: Callable) -> 'Frame':
        self._events.once(event, callback)
        return self

    def off(self, event: str, callback: Optional[Callable] = None) -> 'Frame':
        self._events.off(event, callback)
        return self

    def listener_count(self, event: str) -> int:
        return self._events.listener_count(event)

    def deliver(self, document: FrameDocument) -> None:
        """Finish loading ``document`` and fire ``load``."""
        self.document = document
        self.src = document.url
        self.load_count += 1
        self._events.emit('load', self)

    def fail(self, detail: str) -> None:
        """Fire ``error``."""
        self._events.emit('error', detail)

    def __repr__(self) -> str:
        return f"Frame(name={self.name!r}, src={self.src!r})"


class HiddenForm:
    """
    A hidden form posting to ``action`` with its response shown in the
    frame named ``target``.
    """

    def __init__(
        self,
        action: str,
        target: str,
        method: str = 'POST',
        enctype: str = 'multipart/form-data'
    ):
        self.action = action
        self.target = target
        self.method = method
        self.enctype = enctype
        self.hidden = True
        self.fields: List[Tuple[str, str]] = []
        self.file_inputs: List[FileInput] = []

    def add_hidden(self, name: str, value: str) -> 'HiddenForm':
        """Append a hidden input."""
        self.fields.append((name, value))
        return self

    def add_file_input(self, file_input: FileInput, name: str = 'file') -> 'HiddenForm':
        """Move a file control into the form under ``name``."""
        file_input.name = name
        self.file_inputs.append(file_input)
        return self

    def field_names(self) -> List[str]:
        return [name for name, _ in self.fields] + [f.name for f in self.file_inputs]

    def encode(self) -> aiohttp.FormData:
        """Encode the form the way a browser does for multipart/form-data."""
        form = aiohttp.FormData()
        for name, value in self.fields:
            form.add_field(name, value)
        for file_input in self.file_inputs:
            file = file_input.selected_file()
            if file is None:
                form.add_field(
                    file_input.name, b'',
                    filename='',
                    content_type='application/octet-stream'
                )
            else:
                form.add_field(
                    file_input.name, file.iter_chunks(),
                    filename=file.name,
                    content_type=file.content_type
                )
        return form

    def __repr__(self) -> str:
        return f"HiddenForm(action={self.action!r}, target={self.target!r})"


Element = Union[Frame, HiddenForm]
SessionProvider = Callable[[], Awaitable[aiohttp.ClientSession]]


class FrameHost:
    """
    The document that upload frames and forms are attached to.

    Attaching a frame loads ``about:blank`` into it on the next loop
    iteration, so ``load`` handlers must be registered before attaching.
    Submitting a form fetches its response in the background and loads it
    into the target frame.

    Args:
        session_provider: Coroutine returning the HTTP session to submit
            forms with; share the API client's session so its cookies
            apply. Without one the host opens its own session.
        proxy: Proxy for form submissions; pass the API client's so both
            transports leave through the same route.
    """

    def __init__(
        self,
        session_provider: Optional[SessionProvider] = None,
        proxy: Optional[ProxyConfig] = None
    ):
        self._session_provider = session_provider
        self._proxy = proxy
        self._own_session: Optional[aiohttp.ClientSession] = None
        self._elements: List[Element] = []
        self._navigations: Set[asyncio.Task] = set()
        self._logger = logging.getLogger('mwupload.upload.frames')

    @property
    def elements(self) -> Tuple[Element, ...]:
        """Currently attached elements."""
        return tuple(self._elements)

    def create_frame(self, name: str) -> Frame:
        return Frame(name)

    def create_form(self, action: str, target: str) -> HiddenForm:
        return HiddenForm(action=action, target=target)

    def is_attached(self, element: Element) -> bool:
        return any(el is element for el in self._elements)

    def find_frame(self, name: str) -> Optional[Frame]:
        for element in self._elements:
            if isinstance(element, Frame) and element.name == name:
                return element
        return None

    def attach(self, *elements: Element) -> None:
        """Append elements to the document."""
        loop = asyncio.get_running_loop()
        for element in elements:
            if self.is_attached(element):
                continue
            self._elements.append(element)
            if isinstance(element, Frame):
                loop.call_soon(self._load_blank, element)

    def detach(self, *elements: Element) -> None:
        """Remove elements from the document."""
        for element in elements:
            self._elements = [el for el in self._elements if el is not element]
        self._logger.debug(f"Detached {len(elements)} element(s)")

    def _load_blank(self, frame: Frame) -> None:
        if self.is_attached(frame):
            frame.deliver(FrameDocument.blank())

    def submit(self, form: HiddenForm) -> None:
        """
        Submit ``form``; its response is loaded into the target frame.

        Raises:
            ValueError: If the form or its target frame is not attached
        """
        if not self.is_attached(form):
            raise ValueError("Cannot submit a form that is not attached")
        frame = self.find_frame(form.target)
        if frame is None:
            raise ValueError(f"No frame named {form.target!r}")

        self._logger.debug(f"Submitting form to {form.action} into {frame.name}")
        task = asyncio.ensure_future(self._navigate(frame, form))
        self._navigations.add(task)
        task.add_done_callback(self._navigations.discard)

    async def _navigate(self, frame: Frame, form: HiddenForm) -> None:
        try:
            document = await self.fetch(form)
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            self._logger.error(f"Loading {form.action} into {frame.name} failed: {e}")
            if self.is_attached(frame):
                frame.fail(str(e))
            return

        if self.is_attached(frame):
            frame.deliver(document)

    async def fetch(self, form: HiddenForm) -> FrameDocument:
        """Perform the form's request and render the response."""
        session = await self._get_session()
        proxy_kwargs = self._proxy.request_kwargs() if self._proxy else {}
        async with session.request(
            form.method, form.action, data=form.encode(), **proxy_kwargs
        ) as response:
            text = await response.text(errors='replace')
            return FrameDocument.from_response(
                str(response.url), response.content_type, text
            )

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session_provider is not None:
            return await self._session_provider()
        if self._own_session is None or self._own_session.closed:
            self._own_session = aiohttp.ClientSession()
        return self._own_session

    async def close(self) -> None:
        """Stop pending navigations and close the host's own session."""
        for task in list(self._navigations):
            task.cancel()
        if self._navigations:
            await asyncio.gather(*self._navigations, return_exceptions=True)
        if self._own_session is not None and not self._own_session.closed:
            await self._own_session.close()
            self._own_session = None
