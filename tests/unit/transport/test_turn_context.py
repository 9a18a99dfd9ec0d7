"""Tests for TurnContext outbound operations, hooks and disposal."""

import pytest

from turnstile import Activity, ActivityType, InMemoryTransport, ResourceResponse, TurnContext
from turnstile.domain import ContinuationAlreadyInvokedError, TurnContextClosedError


def test_requires_transport_and_activity(transport: InMemoryTransport):
    with pytest.raises(ValueError, match="transport"):
        TurnContext(None, Activity())
    with pytest.raises(ValueError, match="activity"):
        TurnContext(transport, None)


@pytest.mark.asyncio
async def test_send_activity_accepts_text(context: TurnContext, transport: InMemoryTransport):
    response = await context.send_activity("hi there")

    reply = await transport.get_next_reply()
    assert reply.text == "hi there"
    assert reply.type == "message"
    assert response == ResourceResponse(id=reply.id)


@pytest.mark.asyncio
async def test_replies_are_addressed_back_to_sender(context: TurnContext, transport: InMemoryTransport):
    await context.send_activity("reply")

    reply = await transport.get_next_reply()
    assert reply.from_.id == "bot"
    assert reply.recipient.id == "user1"
    assert reply.conversation.id == "Conversation1"
    assert reply.channel_id == "test"
    assert reply.reply_to_id == context.activity.id


@pytest.mark.asyncio
async def test_responded_tracks_non_trace_sends(trace_transport: InMemoryTransport):
    context = TurnContext(trace_transport, trace_transport.make_activity("hi"))

    await context.send_activity(Activity.create_trace("debug"))
    assert context.responded is False

    await context.send_activity("visible")
    assert context.responded is True


@pytest.mark.asyncio
async def test_send_activities_returns_receipt_per_activity(context: TurnContext):
    responses = await context.send_activities([Activity.create_message("a"), Activity.create_message("b")])

    assert len(responses) == 2
    assert all(response.id for response in responses)


@pytest.mark.asyncio
async def test_send_hooks_run_in_order_around_delivery(context: TurnContext, transport: InMemoryTransport):
    log: list[str] = []

    async def first(ctx, activities, next):
        log.append("first:before")
        responses = await next()
        log.append("first:after")
        return responses

    async def second(ctx, activities, next):
        log.append(f"second:{len(transport.active_queue)}")
        for activity in activities:
            activity.text = activity.text.upper()
        return await next()

    context.on_send_activities(first).on_send_activities(second)
    await context.send_activity("quiet")

    assert log == ["first:before", "second:0", "first:after"]
    assert (await transport.get_next_reply()).text == "QUIET"


@pytest.mark.asyncio
async def test_send_hook_can_swallow_activities(context: TurnContext, transport: InMemoryTransport):
    async def swallow(ctx, activities, next):
        return []

    context.on_send_activities(swallow)
    response = await context.send_activity("dropped")

    assert response is None
    assert context.responded is False
    assert transport.active_queue == ()


@pytest.mark.asyncio
async def test_send_hook_calling_next_twice_is_rejected(context: TurnContext, transport: InMemoryTransport):
    async def greedy(ctx, activities, next):
        await next()
        return await next()

    context.on_send_activities(greedy)

    with pytest.raises(ContinuationAlreadyInvokedError):
        await context.send_activity("once")

    assert len(transport.active_queue) == 1


@pytest.mark.asyncio
async def test_update_activity_replaces_sent_activity(context: TurnContext, transport: InMemoryTransport):
    sent = await context.send_activity("draft")
    seen: list[Activity] = []

    async def observe(ctx, activity, next):
        seen.append(activity)
        return await next()

    context.on_update_activity(observe)
    replacement = Activity(type=ActivityType.MESSAGE, id=sent.id, text="final")
    response = await context.update_activity(replacement)

    assert response.id == sent.id
    assert seen == [replacement]
    assert [a.text for a in transport.active_queue] == ["final"]


@pytest.mark.asyncio
async def test_update_hook_can_short_circuit(context: TurnContext, transport: InMemoryTransport):
    sent = await context.send_activity("draft")

    async def block(ctx, activity, next):
        return None

    context.on_update_activity(block)
    response = await context.update_activity(Activity(type="message", id=sent.id, text="final"))

    assert response.id is None
    assert [a.text for a in transport.active_queue] == ["draft"]


@pytest.mark.asyncio
async def test_delete_activity_by_id(context: TurnContext, transport: InMemoryTransport):
    keep = await context.send_activity("keep")
    remove = await context.send_activity("remove")
    deleted: list[str | None] = []

    async def observe(ctx, reference, next):
        deleted.append(reference.activity_id)
        await next()

    context.on_delete_activity(observe)
    await context.delete_activity(remove.id)

    assert deleted == [remove.id]
    assert [a.id for a in transport.active_queue] == [keep.id]


@pytest.mark.asyncio
async def test_delete_activity_by_reference(context: TurnContext, transport: InMemoryTransport):
    await context.send_activity("remove me")
    queued = transport.active_queue[0]

    await context.delete_activity(queued.get_conversation_reference())

    assert transport.active_queue == ()


@pytest.mark.asyncio
async def test_closed_context_rejects_outbound_operations(context: TurnContext):
    context.turn_state["user"] = "alice"

    async with context:
        pass

    assert context.closed is True
    assert context.turn_state == {}
    with pytest.raises(TurnContextClosedError):
        await context.send_activity("too late")
    with pytest.raises(TurnContextClosedError):
        await context.update_activity(Activity(id="0"))
    with pytest.raises(TurnContextClosedError):
        await context.delete_activity("0")


@pytest.mark.asyncio
async def test_context_closes_when_block_raises(context: TurnContext):
    with pytest.raises(RuntimeError):
        async with context:
            raise RuntimeError("turn failed")

    assert context.closed is True
