import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from amm_sdk.amm_types import ProvideLiquidity, RecoverableSignature
from amm_sdk.errors import SubmissionFailed, UnexpectedQueryShape
from amm_sdk.mutations import compute_mutations
from amm_sdk.rest_client import BuilderClient, NodeClient
from amm_sdk.solution import SolutionAssembler
from amm_sdk.storage import lp_balance_key
from amm_sdk.words import words_to_hex

CONTRACT = bytes(range(32))


def response(payload=None, status=200):
    resp = MagicMock()
    resp.ok = status < 400
    resp.status_code = status
    resp.reason = "Bad Request" if status >= 400 else "OK"
    resp.content = b"" if payload is None else json.dumps(payload).encode()
    resp.text = resp.content.decode()
    resp.json.return_value = payload
    return resp


@pytest.fixture
def solution(alice, resolver):
    intent = ProvideLiquidity(alice, amount_a=1, amount_b=2)
    signature = RecoverableSignature(bytes(64), 0)
    return SolutionAssembler(resolver).assemble(intent, signature, compute_mutations(intent))


def test_submit_solution_posts_wire_json(solution) -> None:
    with patch("amm_sdk.rest_client.requests.request", return_value=response("ABCD")) as req:
        ca = BuilderClient("http://builder:3554/", timeout=5).submit_solution(solution)

    assert ca == "ABCD"
    req.assert_called_once_with("POST", "http://builder:3554/submit-solution",
                                json=solution.to_dict(), timeout=5)


def test_connection_error_becomes_submission_failed(solution) -> None:
    with patch("amm_sdk.rest_client.requests.request",
               side_effect=requests.exceptions.ConnectionError("refused")):
        with pytest.raises(SubmissionFailed) as exc:
            BuilderClient("http://builder").submit_solution(solution)
    assert exc.value.code == -1


def test_http_error_becomes_submission_failed(solution) -> None:
    with patch("amm_sdk.rest_client.requests.request",
               return_value=response("constraint check failed", status=400)):
        with pytest.raises(SubmissionFailed) as exc:
            BuilderClient("http://builder").submit_solution(solution)
    assert exc.value.code == 400
    assert "constraint check failed" in str(exc.value)


def test_query_state_url(alice) -> None:
    key = lp_balance_key(alice)
    with patch("amm_sdk.rest_client.requests.request", return_value=response([7])) as req:
        assert NodeClient("http://node").query_state(CONTRACT, key) == [7]

    url = req.call_args[0][1]
    assert url == f"http://node/query-state/{CONTRACT.hex().upper()}/{words_to_hex(key)}"


@pytest.mark.parametrize("payload, expected", [(None, 0), ([], 0), ([15], 15)])
def test_query_helpers_decode(alice, payload, expected) -> None:
    with patch("amm_sdk.rest_client.requests.request", return_value=response(payload)):
        node = NodeClient("http://node")
        assert node.query_lp_balance(CONTRACT, alice) == expected
        assert node.query_nonce(CONTRACT, alice) == expected


def test_query_helpers_reject_multi_word(alice) -> None:
    with patch("amm_sdk.rest_client.requests.request", return_value=response([1, 2])):
        with pytest.raises(UnexpectedQueryShape):
            NodeClient("http://node").query_nonce(CONTRACT, alice)
