"""Contract read-back over a real web3 client against the local node."""

from __future__ import annotations

import pytest

from hackathon_indexer.chain.contracts import ContractQueries
from hackathon_indexer.chain.resolver import EndpointResolver
from hackathon_indexer.errors import ContractCallError
from tests.factories import ALICE, BOB, ORGANIZER, REGISTRY, SPONSOR, TICKETS
from tests.transport.fake_node import EVENT_TUPLE, TICKET_TUPLE, calldata, encoded


@pytest.fixture
async def queries(fake_node):
    url, node = fake_node
    resolver = EndpointResolver([url], call_timeout=2)
    await resolver.connect()
    yield ContractQueries(resolver, REGISTRY, TICKETS, call_timeout=2), node
    await resolver.close()


def _participant_call(event_id: int, index: int) -> str:
    return calldata("eventParticipants(uint256,uint256)", ["uint256", "uint256"], [event_id, index])


def _participant_result(wallet: str, name: str) -> str:
    return encoded(
        ["address", "string", "uint256", "bool", "uint256"], [wallet, name, 1699995000, False, 0],
    )


def _sponsor_call(event_id: int, index: int) -> str:
    return calldata("eventSponsors(uint256,uint256)", ["uint256", "uint256"], [event_id, index])


def _sponsor_result(wallet: str, amount: int, sponsored_at: int) -> str:
    return encoded(["address", "string", "uint256", "uint256"], [wallet, "Acme", amount, sponsored_at])


async def test_get_event_details_decodes_struct(queries):
    q, node = queries
    node.call_results[calldata("getEvent(uint256)", ["uint256"], [7])] = encoded(
        [EVENT_TUPLE],
        [(7, ORGANIZER, "ETH Shanghai", "Build weekend", 1700000000, 1700100000,
          "Shanghai", 100, 3, True, 1699990000)],
    )

    event = await q.get_event_details(7)

    assert event.event_id == 7
    assert event.organizer == ORGANIZER
    assert event.title == "ETH Shanghai"
    assert event.participant_count == 3
    assert event.active is True


async def test_reverted_call_raises_contract_call_error(queries):
    q, node = queries
    node.call_errors[calldata("getEvent(uint256)", ["uint256"], [404])] = "no such event"

    with pytest.raises(ContractCallError, match=r"getEvent\(404\)"):
        await q.get_event_details(404)


async def test_get_ticket_decodes_struct(queries):
    q, node = queries
    node.call_results[calldata("getTicket(uint256)", ["uint256"], [2**70])] = encoded(
        [TICKET_TUPLE],
        [(2**70, 3, ALICE, "ETH Shanghai", "Shanghai", 1700000000, 1700100000, True, 1699997000)],
    )

    ticket = await q.get_ticket(2**70)

    assert ticket.token_id == 2**70
    assert ticket.holder == ALICE
    assert ticket.used is True


async def test_participant_list_skips_failing_index(queries):
    q, node = queries
    node.call_results[calldata("getParticipantCount(uint256)", ["uint256"], [1])] = encoded(
        ["uint256"], [3],
    )
    node.call_results[_participant_call(1, 0)] = _participant_result(ALICE, "alice")
    # index 1 reverts
    node.call_results[_participant_call(1, 2)] = _participant_result(BOB, "bob")

    participants = await q.get_event_participants(1)

    assert [p.name for p in participants] == ["alice", "bob"]


async def test_find_participant_ignores_case(queries):
    q, node = queries
    node.call_results[calldata("getParticipantCount(uint256)", ["uint256"], [1])] = encoded(
        ["uint256"], [2],
    )
    node.call_results[_participant_call(1, 0)] = _participant_result(ALICE, "alice")
    node.call_results[_participant_call(1, 1)] = _participant_result(BOB, "bob")

    found = await q.find_participant(1, BOB.lower())

    assert found is not None and found.wallet == BOB
    assert await q.find_participant(1, SPONSOR) is None


async def test_find_sponsor_returns_latest_sponsorship(queries):
    q, node = queries
    node.call_results[calldata("getSponsorCount(uint256)", ["uint256"], [7])] = encoded(
        ["uint256"], [3],
    )
    node.call_results[_sponsor_call(7, 0)] = _sponsor_result(SPONSOR, 5, 100)
    node.call_results[_sponsor_call(7, 1)] = _sponsor_result(ALICE, 6, 200)
    node.call_results[_sponsor_call(7, 2)] = _sponsor_result(SPONSOR, 10**18, 300)

    sponsor = await q.find_sponsor(7, SPONSOR)

    assert sponsor is not None
    assert (sponsor.amount, sponsor.sponsored_at) == (10**18, 300)


async def test_count_failure_raises(queries):
    q, _ = queries

    with pytest.raises(ContractCallError, match="getSponsorCount"):
        await q.get_event_sponsors(9)
