"""Tests for the internal, Slack and Monday.com processors."""

from datetime import datetime, timezone

import pytest

from actionflow.common.schemas import (
    DIGEST_TITLE,
    ActionPriority,
    ActionStatus,
    BoardConfig,
    Integration,
    ParsedActionItem,
    User,
)
from actionflow.processors.base import ProcessorConfig
from actionflow.processors.internal import InternalProcessor, clean_action_text, map_priority
from actionflow.processors.monday import MondayProcessor, clean_item_name, map_priority_label
from actionflow.processors.slack import SlackProcessor
from actionflow.tests.fakes import FakeMonday, FakeSlack, add_monday, add_slack

DUE = datetime(2026, 11, 2, 17, 0, tzinfo=timezone.utc)


# ============================================================================
# Internal
# ============================================================================

class TestInternalHelpers:
    @pytest.mark.parametrize("priority,tier", [
        ("urgent", ActionPriority.FIRST),
        ("ASAP please", ActionPriority.FIRST),
        ("high", ActionPriority.SECOND),
        ("medium", ActionPriority.THIRD),
        ("low priority", ActionPriority.SOMEDAY),
        ("whenever", ActionPriority.QUICK),
        (None, ActionPriority.QUICK),
    ])
    def test_map_priority(self, priority, tier):
        assert map_priority(priority) == tier

    def test_clean_action_text(self):
        assert clean_action_text("todo: send the deck") == "Send the deck"
        assert clean_action_text("@omar review the PR") == "Review the PR"
        assert clean_action_text("Action item:") == "Action item:"


class TestInternalProcessor:
    @pytest.mark.asyncio
    async def test_validate_config(self, store):
        assert (await InternalProcessor(ProcessorConfig("u1", project_id="p1"), store).validate_config()).valid

        missing = await InternalProcessor(ProcessorConfig("ghost"), store).validate_config()
        assert missing.errors == ["User not found"]

        foreign = await InternalProcessor(ProcessorConfig("u2", project_id="p1"), store).validate_config()
        assert foreign.errors == ["Project not found or user does not have access"]

    @pytest.mark.asyncio
    async def test_creates_owned_task_with_links(self, store):
        config = ProcessorConfig(
            "u1",
            project_id="p1",
            transcription_id="sess-1",
            action_status=ActionStatus.DRAFT,
            screenshot_ids=["shot-a", "shot-b"],
        )
        item = ParsedActionItem(
            text="todo: send the deck",
            assignee="omar haddad",
            priority="urgent",
            due_date=DUE,
            context='From transcript: "todo: send the deck"',
            screenshot_refs=[2, 5],
        )

        result = await InternalProcessor(config, store).process_action_items([item])

        assert result.success and result.processed_count == 1
        action = next(iter(store.actions.values()))
        assert action.name == "Send the deck"
        assert action.created_by_id == "u1"
        assert action.priority == ActionPriority.FIRST
        assert action.status == ActionStatus.DRAFT
        assert action.due_date == DUE
        assert action.transcription_session_id == "sess-1"
        assert [(a.action_id, a.user_id) for a in store.action_assignees] == [(action.id, "u2")]
        assert [s.screenshot_id for s in store.action_screenshots] == ["shot-b"]
        assert result.created_items[0].id == action.id

    @pytest.mark.asyncio
    async def test_assignee_by_first_name(self, store):
        processor = InternalProcessor(ProcessorConfig("u1"), store)
        assert (await processor.find_user_by_name("Omar")).id == "u2"
        assert (await processor.find_user_by_name("maria lopez")).id == "u1"

    @pytest.mark.asyncio
    async def test_assignee_with_extra_surname_resolves(self, store):
        store.add_user(User(id="u3", name="Sarah"))
        processor = InternalProcessor(ProcessorConfig("u1"), store)

        assert (await processor.find_user_by_name("Sarah Connor")).id == "u3"

        result = await processor.process_action_items(
            [ParsedActionItem(text="Draft the brief", assignee="Sarah Connor")]
        )
        assert result.processed_count == 1
        assert [a.user_id for a in store.action_assignees] == ["u3"]

    @pytest.mark.asyncio
    async def test_unresolved_assignee_leaves_task_unassigned(self, store):
        items = [
            ParsedActionItem(text="Book travel", assignee="Zed"),
            ParsedActionItem(text="Order lunch", assignee="Unassigned"),
        ]
        result = await InternalProcessor(ProcessorConfig("u1"), store).process_action_items(items)

        assert result.processed_count == 2
        assert store.action_assignees == []

    @pytest.mark.asyncio
    async def test_one_failure_does_not_abort_batch(self, store):
        real_create = store.create_action

        async def create(action):
            if action.name == "Broken task":
                raise RuntimeError("db down")
            return await real_create(action)

        store.create_action = create
        items = [ParsedActionItem(text=t) for t in ("First task", "Broken task", "Third task")]

        result = await InternalProcessor(ProcessorConfig("u1"), store).process_action_items(items)

        assert not result.success
        assert result.processed_count == 2
        assert result.is_partial_success
        assert result.errors == ['Failed to create action "Broken task": db down']

    @pytest.mark.asyncio
    async def test_get_status(self, store):
        status = await InternalProcessor(ProcessorConfig("u1"), store).get_status()
        assert status.available
        assert status.message is None

    @pytest.mark.asyncio
    async def test_get_status_store_unavailable(self, store):
        async def get_user(user_id):
            raise RuntimeError("connection refused")

        store.get_user = get_user
        status = await InternalProcessor(ProcessorConfig("u1"), store).get_status()

        assert not status.available
        assert status.message == "Store unavailable: connection refused"


# ============================================================================
# Slack
# ============================================================================

def _slack_processor(store, fake, channel="#apollo", integration_id="slack-1", project_id="p1"):
    config = ProcessorConfig(
        "u1",
        project_id=project_id,
        transcription_id="sess-1",
        integration_id=integration_id,
        channel=channel,
    )
    return SlackProcessor(config, store, slack_client_factory=fake.client_factory())


class TestSlackProcessor:
    @pytest.mark.asyncio
    async def test_validate_config(self, store):
        add_slack(store)
        fake = FakeSlack()
        assert (await _slack_processor(store, fake).validate_config()).valid

        no_channel = await _slack_processor(store, fake, channel=None).validate_config()
        assert "No Slack channel configured" in no_channel.errors

    @pytest.mark.asyncio
    async def test_validate_config_auth_failure(self, store):
        add_slack(store)
        validation = await _slack_processor(store, FakeSlack(fail_auth=True)).validate_config()
        assert not validation.valid
        assert "invalid_auth" in validation.errors[0]

    @pytest.mark.asyncio
    async def test_integration_of_another_user_is_rejected(self, store):
        store.add_integration(Integration(
            id="slack-x", user_id="u2", provider="slack", credentials={"BOT_TOKEN": "t"}
        ))
        validation = await _slack_processor(store, FakeSlack(), integration_id="slack-x").validate_config()
        assert not validation.valid

    @pytest.mark.asyncio
    async def test_posts_one_digest(self, store):
        add_slack(store)
        fake = FakeSlack()
        items = [ParsedActionItem(text=f"Task {i}", assignee="Maria") for i in range(1, 13)]

        result = await _slack_processor(store, fake).process_action_items(items)

        assert result.success
        assert result.processed_count == 12
        assert result.created_items[0].url == "slack://channel/apollo"
        assert result.created_items[0].id == "17000.1"

        assert len(fake.posts) == 1
        post = fake.posts[0]
        assert post["channel"] == "#apollo"
        assert post["text"] == DIGEST_TITLE
        body = post["blocks"][0]["text"]["text"]
        assert body.startswith(f"📋 *{DIGEST_TITLE}*\n\nFound 12 action items:")
        assert "1. Task 1 (Maria)" in body
        assert "_... and 2 more action items_" in body
        assert "_Project: Apollo (Core)_" in body
        assert "*actionCount:* 12" in body

    @pytest.mark.asyncio
    async def test_post_failure_fails_whole_batch(self, store):
        add_slack(store)
        items = [ParsedActionItem(text="Task one"), ParsedActionItem(text="Task two")]

        result = await _slack_processor(store, FakeSlack(fail_post=True)).process_action_items(items)

        assert not result.success
        assert result.processed_count == 0
        assert result.errors == ["Slack processing failed: channel_not_found"]

    @pytest.mark.asyncio
    async def test_empty_batch_posts_nothing(self, store):
        add_slack(store)
        fake = FakeSlack()
        result = await _slack_processor(store, fake).process_action_items([])
        assert result.success and result.processed_count == 0
        assert fake.posts == []

    @pytest.mark.asyncio
    async def test_get_status(self, store):
        add_slack(store)
        status = await _slack_processor(store, FakeSlack()).get_status()
        assert status.available

    @pytest.mark.asyncio
    async def test_get_status_not_configured(self, store):
        missing = await _slack_processor(store, FakeSlack(), integration_id="nope").get_status()
        assert not missing.available
        assert missing.message == "Slack service not configured"

        add_slack(store)
        store.integrations["slack-1"].credentials = {}
        no_token = await _slack_processor(store, FakeSlack()).get_status()
        assert no_token.message == "Slack service not configured"

    @pytest.mark.asyncio
    async def test_get_status_auth_failure(self, store):
        add_slack(store)
        status = await _slack_processor(store, FakeSlack(fail_auth=True)).get_status()
        assert not status.available
        assert status.message.startswith("Slack connection failed:")
        assert "invalid_auth" in status.message


# ============================================================================
# Monday.com
# ============================================================================

async def _monday_processor(store, fake, board=None):
    add_monday(store)
    board = board or await store.find_board_config("monday-1")
    config = ProcessorConfig("u1", transcription_id="sess-1", integration_id="monday-1")
    return MondayProcessor(config, board, store, monday_client_factory=fake.client_factory())


class TestMondayHelpers:
    def test_map_priority_label(self):
        assert map_priority_label("urgent") == "High"
        assert map_priority_label("High") == "High"
        assert map_priority_label("medium") == "Medium"
        assert map_priority_label("low") == "Low"
        assert map_priority_label("whenever") == "whenever"

    def test_clean_item_name(self):
        assert clean_item_name("Action item: Ship it") == "Ship it"
        assert clean_item_name("- Ship it") == "Ship it"
        assert clean_item_name("3. Ship it") == "Ship it"


class TestMondayProcessor:
    @pytest.mark.asyncio
    async def test_validate_config(self, store):
        assert (await (await _monday_processor(store, FakeMonday())).validate_config()).valid

    @pytest.mark.asyncio
    async def test_board_not_accessible(self, store):
        validation = await (await _monday_processor(store, FakeMonday(boards=["999"]))).validate_config()
        assert validation.errors == ["Board with ID 100 not found or not accessible"]

    @pytest.mark.asyncio
    async def test_missing_board_id(self, store):
        processor = await _monday_processor(store, FakeMonday(), board=BoardConfig(integration_id="monday-1"))
        validation = await processor.validate_config()
        assert validation.errors == ["Board ID is required for Monday.com integration"]

    @pytest.mark.asyncio
    async def test_creates_item_with_mapped_columns(self, store):
        fake = FakeMonday()
        processor = await _monday_processor(store, fake)
        item = ParsedActionItem(
            text="Action item: Ship the release",
            assignee="maria lopez",
            priority="urgent",
            due_date=DUE,
            context="From transcript",
        )

        result = await processor.process_action_items([item])

        assert result.success and result.processed_count == 1
        assert fake.created[0]["name"] == "Ship the release"
        assert fake.created[0]["column_values"] == {
            "person": {"personsAndTeams": [{"id": 12, "kind": "person"}]},
            "date4": {"date": "2026-11-02"},
            "status": {"label": "High"},
            "long_text": {"text": "From transcript"},
        }
        assert result.created_items[0].url == "https://acme.monday.com/boards/100/pulses/1000"

        links = await store.list_external_links("sess-1")
        assert [(l.provider, l.external_id) for l in links] == [("monday", "1000")]

    @pytest.mark.asyncio
    async def test_unmatched_assignee_and_missing_fields_are_omitted(self, store):
        fake = FakeMonday()
        processor = await _monday_processor(store, fake)

        await processor.process_action_items([ParsedActionItem(text="Ship it", assignee="Nobody")])

        assert fake.created[0]["column_values"] == {}

    @pytest.mark.asyncio
    async def test_item_failure_is_isolated(self, store):
        fake = FakeMonday(fail_names={"Broken"})
        processor = await _monday_processor(store, fake)
        items = [ParsedActionItem(text=t) for t in ("First", "Broken", "Third")]

        result = await processor.process_action_items(items)

        assert [c["name"] for c in fake.created] == ["First", "Third"]
        assert result.processed_count == 2
        assert not result.success
        assert result.is_partial_success
        assert "Broken" in result.errors[0]

    @pytest.mark.asyncio
    async def test_get_status(self, store):
        status = await (await _monday_processor(store, FakeMonday())).get_status()
        assert status.available
        assert status.message == "Connected to Monday.com"

    @pytest.mark.asyncio
    async def test_get_status_without_integration(self, store):
        board = BoardConfig(integration_id="monday-x", board_id="100")
        config = ProcessorConfig("u1", integration_id="monday-x")
        processor = MondayProcessor(config, board, store, monday_client_factory=FakeMonday().client_factory())

        status = await processor.get_status()

        assert not status.available
        assert status.message == "Monday.com service not initialized"

    @pytest.mark.asyncio
    async def test_get_status_auth_failure(self, store):
        status = await (await _monday_processor(store, FakeMonday(fail_auth=True))).get_status()
        assert not status.available
        assert status.message.startswith("Connection failed:")
        assert "Not Authenticated" in status.message
