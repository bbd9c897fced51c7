import copy
import random
import re
from types import SimpleNamespace

import pytest
from bson import ObjectId
from pymongo import ASCENDING

from smartreceipt.channels.base import MessagingChannel
from smartreceipt.core.concurrency import ConcurrencyGuard
from smartreceipt.core.config import settings
from smartreceipt.core.exceptions import ExternalServiceError, RenderError
from smartreceipt.db import mongo
from smartreceipt.flow.dispatcher import dispatch_message
from smartreceipt.schemas.message import IncomingMessage
from smartreceipt.services import user_service
from smartreceipt.services.renderer import Renderer, RenderPage

USER_ID = "telegram:8012345678"
ADMIN_ID = "telegram:1000"
OTHER_ADMIN_ID = "telegram:1001"


# ============================================================
# IN-MEMORY MONGO
# ============================================================

def _sort_key(value):
    return (value is None, value)


def _matches(doc, query):
    for key, condition in query.items():
        value = doc.get(key)
        if isinstance(condition, dict) and any(k.startswith("$") for k in condition):
            for op, arg in condition.items():
                if op == "$gte":
                    if value is None or not value >= arg:
                        return False
                elif op == "$lt":
                    if value is None or not value < arg:
                        return False
                elif op == "$ne":
                    if (arg in value) if isinstance(value, list) else value == arg:
                        return False
                elif op == "$in":
                    if value not in arg:
                        return False
                elif op == "$regex":
                    flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
                    if not isinstance(value, str) or not re.search(arg, value, flags):
                        return False
                elif op == "$options":
                    continue
                else:
                    raise NotImplementedError(op)
        elif value != condition:
            return False
    return True


def _apply_update(doc, update, inserting=False):
    for key, value in update.get("$set", {}).items():
        doc[key] = copy.deepcopy(value)
    if inserting:
        for key, value in update.get("$setOnInsert", {}).items():
            doc[key] = copy.deepcopy(value)
    for key, value in update.get("$inc", {}).items():
        doc[key] = doc.get(key, 0) + value
    for key, value in update.get("$addToSet", {}).items():
        existing = doc.setdefault(key, [])
        if value not in existing:
            existing.append(copy.deepcopy(value))
    for key, value in update.get("$push", {}).items():
        doc.setdefault(key, []).append(copy.deepcopy(value))
    for key in update.get("$unset", {}):
        doc.pop(key, None)


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs
        self._limit = None

    def sort(self, key, direction=ASCENDING):
        self._docs.sort(key=lambda d: _sort_key(d.get(key)), reverse=direction != ASCENDING)
        return self

    def limit(self, count):
        self._limit = count
        return self

    async def to_list(self, length=None):
        docs = self._docs
        if self._limit:
            docs = docs[:self._limit]
        if length:
            docs = docs[:length]
        return [copy.deepcopy(d) for d in docs]


class FakeCollection:
    """The subset of the Motor collection API the services use."""

    def __init__(self, name):
        self.name = name
        self.docs = []

    def _find(self, query):
        return [d for d in self.docs if _matches(d, query or {})]

    async def find_one(self, query=None, sort=None):
        docs = self._find(query)
        for key, direction in reversed(sort or []):
            docs.sort(key=lambda d: _sort_key(d.get(key)), reverse=direction != ASCENDING)
        return copy.deepcopy(docs[0]) if docs else None

    def find(self, query=None):
        return FakeCursor(self._find(query))

    async def insert_one(self, doc):
        doc.setdefault("_id", ObjectId())
        self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    async def update_one(self, query, update, upsert=False):
        docs = self._find(query)
        if docs:
            before = copy.deepcopy(docs[0])
            _apply_update(docs[0], update)
            return SimpleNamespace(matched_count=1, modified_count=int(before != docs[0]), upserted_id=None)

        if not upsert:
            return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=None)

        doc = {k: v for k, v in query.items() if not isinstance(v, dict)}
        _apply_update(doc, update, inserting=True)
        doc.setdefault("_id", ObjectId())
        self.docs.append(doc)
        return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=doc["_id"])

    async def update_many(self, query, update):
        docs = self._find(query)
        for doc in docs:
            _apply_update(doc, update)
        return SimpleNamespace(matched_count=len(docs), modified_count=len(docs))

    async def delete_one(self, query):
        docs = self._find(query)
        if docs:
            self.docs.remove(docs[0])
        return SimpleNamespace(deleted_count=len(docs[:1]))

    async def delete_many(self, query):
        docs = self._find(query)
        for doc in docs:
            self.docs.remove(doc)
        return SimpleNamespace(deleted_count=len(docs))

    async def count_documents(self, query):
        return len(self._find(query))

    async def create_index(self, keys, **kwargs):
        return kwargs.get("name", "index")


class FakeDatabase:
    def __init__(self):
        self._collections = {}

    def __getitem__(self, name):
        if name not in self._collections:
            self._collections[name] = FakeCollection(name)
        return self._collections[name]


# ============================================================
# COLLABORATORS
# ============================================================

class FakeChannel(MessagingChannel):
    """Records everything the bot sends."""

    platform = "telegram"

    def __init__(self):
        self.sent = []
        self.files = []
        self.media = b"\x89PNG fake logo"
        self.media_error = False
        self.group_members = set()
        self.unreachable = set()

    async def send_text(self, user_id, text):
        if user_id in self.unreachable:
            raise ExternalServiceError(f"{user_id} unreachable")
        self.sent.append((user_id, text))

    async def send_file(self, user_id, file, caption=None):
        self.files.append((user_id, file, caption))

    async def download_media(self, message):
        if self.media_error:
            raise ExternalServiceError("download failed")
        return self.media

    async def is_group_member(self, user_id, group_id):
        return user_id in self.group_members

    def texts_to(self, user_id):
        return [text for to, text in self.sent if to == user_id]

    def last_text(self, user_id):
        texts = self.texts_to(user_id)
        return texts[-1] if texts else None


class FakePage(RenderPage):
    def __init__(self, fail_on=None):
        self.url = None
        self.fail_on = fail_on
        self.captured = None
        self._closed = False

    async def goto(self, url):
        if self.fail_on == "goto":
            raise RenderError("page failed to load")
        self.url = url

    async def pdf(self):
        if self.fail_on == "capture":
            raise RenderError("capture failed")
        self.captured = "pdf"
        return b"%PDF-1.4 receipt"

    async def screenshot(self):
        if self.fail_on == "capture":
            raise RenderError("capture failed")
        self.captured = "png"
        return b"\x89PNG receipt"

    async def close(self):
        self._closed = True

    @property
    def is_closed(self):
        return self._closed


class FakeRenderer(Renderer):
    def __init__(self):
        self.pages = []
        self.fail_on = None

    async def new_page(self):
        page = FakePage(fail_on=self.fail_on)
        self.pages.append(page)
        return page


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture(autouse=True)
def db():
    database = FakeDatabase()
    mongo.use_database(database)
    yield database
    mongo.use_database(None)


@pytest.fixture(autouse=True)
def base_settings(monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_IDS", [])
    monkeypatch.setattr(settings, "AUTHORIZED_GROUP_ID", None)
    monkeypatch.setattr(settings, "FREE_TRIAL_LIMIT", 2)
    monkeypatch.setattr(settings, "FREE_EDIT_LIMIT", 2)
    monkeypatch.setattr(settings, "RECEIPT_BASE_URL", "https://receipts.example.com/")
    monkeypatch.setattr(settings, "PAYMENT_WEBHOOK_SECRET", None)


@pytest.fixture
def admins(monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_IDS", [ADMIN_ID, OTHER_ADMIN_ID])
    return [ADMIN_ID, OTHER_ADMIN_ID]


@pytest.fixture
def channel():
    return FakeChannel()


@pytest.fixture
def renderer():
    return FakeRenderer()


@pytest.fixture
def send(channel, renderer):
    """Dispatches one message as if it arrived from the channel."""

    async def _send(text="", user_id=USER_ID, **kwargs):
        message = IncomingMessage(user_id=user_id, platform="telegram", text=text, **kwargs)
        return await dispatch_message(
            message, channel, renderer=renderer, guard=ConcurrencyGuard(), rng=random.Random(0)
        )

    return _send


async def make_profile(user_id=USER_ID, **fields):
    await user_service.create_profile(user_id, fields.pop("brand_name", "Acme Stores"))
    values = {
        "brand_color": "#1D4ED8",
        "address": "12 Marina Road, Lagos",
        "contact_info": "08011112222 hello@acme.ng",
        "contact_email": "hello@acme.ng",
        "contact_phone": "08011112222",
        "receipt_format": "PNG",
        "onboarding_complete": True,
    }
    values.update(fields)
    await user_service.update_profile(user_id, values)
    return await user_service.get_profile(user_id)


@pytest.fixture
def profile_factory():
    return make_profile


@pytest.fixture
async def profile():
    return await make_profile()
