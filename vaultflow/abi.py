"""Minimal ABI fragments for ERC-20 approvals and ERC-4626 vault calls."""

from __future__ import annotations

from typing import Any, Dict, List


def _uint(name: str) -> Dict[str, str]:
    return {"internalType": "uint256", "name": name, "type": "uint256"}


def _address(name: str) -> Dict[str, str]:
    return {"internalType": "address", "name": name, "type": "address"}


def _function(name: str, inputs: List[Dict[str, str]], output: Dict[str, str]) -> Dict[str, Any]:
    return {
        "inputs": inputs,
        "name": name,
        "outputs": [output],
        "stateMutability": "nonpayable",
        "type": "function",
    }


ERC20_APPROVE_ABI: List[Dict[str, Any]] = [
    _function(
        "approve",
        [_address("spender"), _uint("amount")],
        {"internalType": "bool", "name": "", "type": "bool"},
    ),
]

ERC4626_ABI: List[Dict[str, Any]] = [
    _function("deposit", [_uint("assets"), _address("receiver")], _uint("shares")),
    _function("mint", [_uint("shares"), _address("receiver")], _uint("assets")),
    _function(
        "withdraw",
        [_uint("assets"), _address("receiver"), _address("owner")],
        _uint("shares"),
    ),
    _function(
        "redeem",
        [_uint("shares"), _address("receiver"), _address("owner")],
        _uint("assets"),
    ),
]


def function_abi(abi: List[Dict[str, Any]], name: str) -> List[Dict[str, Any]]:
    """Return the entries of ``abi`` describing function ``name``."""
    entries = [
        entry for entry in abi if entry.get("type") == "function" and entry.get("name") == name
    ]
    if not entries:
        raise KeyError(f"Function {name} not in ABI")
    return entries
