"""
Contract ABIs for the Stylus ERC-1155 build and its factory.

The core interface is what every deployed build implements. The extended
entries (ownership, pausing, minting, burning, URI, supply tracking) exist only
on some builds, so reads against them go through capability probes.
"""

from typing import Any, Dict, List


def _fn(name: str, inputs: List[tuple], outputs: List[str], mutability: str = "nonpayable") -> Dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "inputs": [{"name": arg_name, "type": arg_type} for arg_name, arg_type in inputs],
        "outputs": [{"name": "", "type": out_type} for out_type in outputs],
        "stateMutability": mutability,
    }


def _event(name: str, inputs: List[tuple]) -> Dict[str, Any]:
    return {
        "type": "event",
        "name": name,
        "inputs": [
            {"name": arg_name, "type": arg_type, "indexed": indexed}
            for arg_name, arg_type, indexed in inputs
        ],
    }


def _error(name: str, inputs: List[tuple]) -> Dict[str, Any]:
    return {
        "type": "error",
        "name": name,
        "inputs": [{"name": arg_name, "type": arg_type} for arg_name, arg_type in inputs],
    }


# Implemented by every deployed build (Stylus `My1155`)
ERC1155_CORE_ABI: List[Dict[str, Any]] = [
    _fn("balanceOf", [("account", "address"), ("id", "uint256")], ["uint256"], "view"),
    _fn("balanceOfBatch", [("accounts", "address[]"), ("ids", "uint256[]")], ["uint256[]"], "view"),
    _fn("isApprovedForAll", [("account", "address"), ("operator", "address")], ["bool"], "view"),
    _fn("setApprovalForAll", [("operator", "address"), ("approved", "bool")], []),
    _fn(
        "safeTransferFrom",
        [("from", "address"), ("to", "address"), ("id", "uint256"), ("value", "uint256"), ("data", "uint8[]")],
        [],
    ),
    _fn(
        "safeBatchTransferFrom",
        [("from", "address"), ("to", "address"), ("ids", "uint256[]"), ("values", "uint256[]"), ("data", "uint8[]")],
        [],
    ),
]

# Present on the full-featured build only
ERC1155_EXTENDED_ABI: List[Dict[str, Any]] = [
    _fn("owner", [], ["address"], "view"),
    _fn("isPaused", [], ["bool"], "view"),
    _fn("uri", [("id", "uint256")], ["string"], "view"),
    _fn("totalSupply", [("id", "uint256")], ["uint256"], "view"),
    _fn("exists", [("id", "uint256")], ["bool"], "view"),
    _fn("initialize", [("baseUri", "string"), ("owner", "address")], []),
    _fn("mint", [("to", "address"), ("id", "uint256"), ("amount", "uint256"), ("data", "bytes")], []),
    _fn("mintNew", [("to", "address"), ("amount", "uint256")], ["uint256"]),
    _fn("mintBatch", [("to", "address"), ("ids", "uint256[]"), ("amounts", "uint256[]"), ("data", "bytes")], []),
    _fn("burn", [("id", "uint256"), ("amount", "uint256")], []),
    _fn("burnBatch", [("ids", "uint256[]"), ("amounts", "uint256[]")], []),
    _fn("setUri", [("newUri", "string")], []),
    _fn("pause", [], []),
    _fn("unpause", [], []),
    _fn("transferOwnership", [("newOwner", "address")], []),
]

ERC1155_EVENTS_ABI: List[Dict[str, Any]] = [
    _event("TransferSingle", [
        ("operator", "address", True),
        ("from", "address", True),
        ("to", "address", True),
        ("id", "uint256", False),
        ("value", "uint256", False),
    ]),
    _event("TransferBatch", [
        ("operator", "address", True),
        ("from", "address", True),
        ("to", "address", True),
        ("ids", "uint256[]", False),
        ("values", "uint256[]", False),
    ]),
    _event("ApprovalForAll", [
        ("account", "address", True),
        ("operator", "address", True),
        ("approved", "bool", False),
    ]),
]

ERC1155_ERRORS_ABI: List[Dict[str, Any]] = [
    _error("ERC1155InsufficientBalance", [
        ("sender", "address"), ("balance", "uint256"), ("needed", "uint256"), ("id", "uint256"),
    ]),
    _error("ERC1155InvalidReceiver", [("receiver", "address")]),
    _error("ERC1155InvalidApprover", [("approver", "address")]),
    _error("ERC1155InvalidOperator", [("operator", "address")]),
    _error("ERC1155InvalidArrayLength", [("idsLength", "uint256"), ("valuesLength", "uint256")]),
    _error("ERC1155MissingApprovalForAll", [("operator", "address"), ("owner", "address")]),
    # Solidity-style revert strings
    _error("Error", [("message", "string")]),
]

ERC1155_ABI: List[Dict[str, Any]] = (
    ERC1155_CORE_ABI + ERC1155_EXTENDED_ABI + ERC1155_EVENTS_ABI + ERC1155_ERRORS_ABI
)

TOKEN_FACTORY_ABI: List[Dict[str, Any]] = [
    _fn("createMultiToken", [("baseUri", "string"), ("owner", "address")], ["address"]),
    _fn("getTotalContractsDeployed", [], ["uint256"], "view"),
    _fn("registerMultiToken", [("contractAddress", "address"), ("baseUri", "string")], []),
    _fn("getAllDeployedContracts", [], ["address[]"], "view"),
    _event("MultiTokenCreated", [
        ("contractAddress", "address", True),
        ("creator", "address", True),
        ("baseUri", "string", False),
        ("timestamp", "uint256", False),
    ]),
]

# Functions every build implements; anything else may be missing.
CORE_FUNCTIONS = frozenset(entry["name"] for entry in ERC1155_CORE_ABI)
