"""
Pre-compiled contracts known to deploy on MegaBNB

Each entry carries its bytecode, ABI and the static gas limit used when
estimation fails. `simplest` is the no-op contract that has deployed
reliably and serves as the fallback for every other type. `standard` and
`nano` are token contracts whose constructor takes (name, symbol).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ContractSpec:
    name: str
    bytecode: str
    abi: List[Dict[str, Any]] = field(default_factory=list)
    gas_limit: int = 100_000
    description: str = ""
    default_args: Optional[List[Any]] = None

    @property
    def constructor_types(self) -> List[str]:
        for item in self.abi:
            if item.get("type") == "constructor":
                return [param["type"] for param in item.get("inputs", [])]
        return []

    @property
    def is_token(self) -> bool:
        """Constructor takes (name, symbol)"""
        return self.constructor_types == ["string", "string"]


SET_GET_UINT_ABI = [
    {
        "inputs": [{"internalType": "uint256", "name": "x", "type": "uint256"}],
        "name": "set",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "get",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
]

DEFAULT_TOKEN_NAME = "MegaBNBToken"
DEFAULT_TOKEN_SYMBOL = "MBT"

NAME_SYMBOL_CONSTRUCTOR = {
    "inputs": [
        {"internalType": "string", "name": "name_", "type": "string"},
        {"internalType": "string", "name": "symbol_", "type": "string"},
    ],
    "stateMutability": "nonpayable",
    "type": "constructor",
}


def _view(name: str, output_type: str, inputs: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    return {
        "inputs": inputs or [],
        "name": name,
        "outputs": [{"internalType": output_type, "name": "", "type": output_type}],
        "stateMutability": "view",
        "type": "function",
    }


def _param(name: str, abi_type: str) -> Dict[str, Any]:
    return {"internalType": abi_type, "name": name, "type": abi_type}


MINIMAL_TOKEN_ABI = [
    NAME_SYMBOL_CONSTRUCTOR,
    _view("name", "string"),
    _view("symbol", "string"),
]

ERC20_ABI = [
    NAME_SYMBOL_CONSTRUCTOR,
    _view("name", "string"),
    _view("symbol", "string"),
    _view("decimals", "uint8"),
    _view("totalSupply", "uint256"),
    _view("balanceOf", "uint256", [_param("account", "address")]),
    _view("allowance", "uint256", [_param("owner", "address"), _param("spender", "address")]),
    {
        "inputs": [_param("to", "address"), _param("amount", "uint256")],
        "name": "transfer",
        "outputs": [_param("", "bool")],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [_param("spender", "address"), _param("amount", "uint256")],
        "name": "approve",
        "outputs": [_param("", "bool")],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [_param("from", "address"), _param("to", "address"), _param("amount", "uint256")],
        "name": "transferFrom",
        "outputs": [_param("", "bool")],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

CONTRACTS: Dict[str, ContractSpec] = {
    "empty": ContractSpec(
        name="empty",
        bytecode=(
            "0x6080604052348015600f57600080fd5b50603f80601d6000396000f3fe6080604052600080fdfea264697066735822"
            "1220d1641b2c78e5e49e8ba1c302f7bfdc441d61417aed6f6e195f268af586edd22064736f6c634300060c0033"
        ),
        gas_limit=100_000,
        description="Empty contract, solc 0.6",
    ),
    "simplest": ContractSpec(
        name="simplest",
        bytecode=(
            "0x6080604052348015600f57600080fd5b50603c80601d6000396000f3fe6080604052600080fdfea265627a7a723058"
            "205bd231c7695a074f70485e1ebb87dfc87d67e3035131e487c759aa88d8d4551c64736f6c63430005090032"
        ),
        gas_limit=70_000,
        description="No-op contract, solc 0.5",
    ),
    "simple": ContractSpec(
        name="simple",
        bytecode=(
            "0x608060405234801561001057600080fd5b5060c78061001f6000396000f3fe6080604052348015600f57600080fd5b50"
            "6004361060325760003560e01c806360fe47b11460375780636d4ce63c146049575b600080fd5b60476042366004605e"
            "565b600055565b005b60005460405190815260200160405180910390f35b600060208284031215606f57600080fd5b50"
            "35919050565b7f4e487b7160e01b600052604160045260246000fdfea2646970667358221220e9bb69572a5e1a61b9f4"
            "e92cb54db0b1d6c6d95db61ebb123e7ab01e9fe48e9b64736f6c634300080c0033"
        ),
        abi=SET_GET_UINT_ABI,
        gas_limit=200_000,
        description="uint256 storage with set/get, solc 0.8",
    ),
    "storage": ContractSpec(
        name="storage",
        bytecode=(
            "0x6060604052341561000f57600080fd5b5b60d08061001e6000396000f30060606040526000357c0100000000000000"
            "000000000000000000000000000000000000000000900463ffffffff16806360fe47b11460475780636d4ce63c14606d"
            "575b600080fd5b3415605157600080fd5b606b60048080359060200190919050506093565b005b3415607757600080fd"
            "5b607d609e565b6040518082815260200191505060405180910390f35b806000819055505b50565b6000805490505b90"
            "5600a165627a7a723058202b2d3f25739bc9f10eac3f89f0bdbabe19958655e7a1a691b544b7a27f2517730029"
        ),
        abi=SET_GET_UINT_ABI,
        gas_limit=70_000,
        description="uint256 storage with set/get, solc 0.4",
    ),
    "minimal": ContractSpec(
        name="minimal",
        bytecode=(
            "0x6060604052341561000f57600080fd5b6040516102d83803806102d8833981016040528080518201919060200180"
            "518201919050508160009080519060200190610049929190610060565b5080600190805190602001906100609291"
            "906100e7565b505050610182565b828054600181600116156101000203166002900490600052602060002090601f01"
            "6020900481019282601f106100a157805160ff19168380011785556100cf565b828001600101855582156100cf5791"
            "82015b828111156100ce5781518255916020019190600101906100b3565b5b5090506100dc919061016e565b509056"
            "5b828054600181600116156101000203166002900490600052602060002090601f016020900481019282601f106101"
            "2857805160ff1916838001178555610156565b82800160010185558215610156579182015b82811115610155578251"
            "82559160200191906001019061013a565b5b5090506101639190610173565b5090565b5b80821115610186576000"
            "816000905550600101610174565b5090565b610147806101916000396000f300608060405260043610610041576000"
            "357c0100000000000000000000000000000000000000000000000000000000900463ffffffff16806306fdde031461"
            "0046575b600080fd5b34801561005257600080fd5b5061005b6100d6565b6040518080602001828103825283818151"
            "815260200191508051906020019080838360005b8381101561009b578082015181840152602081019050610080565b"
            "50505050905090810190601f1680156100c85780820380516001836020036101000a03191681526020019150"
            "5b509250505060405180910390f35b600080546001816001161561010002031660029004806"
            "01f0160208091040260200160405190810160405280929190818152602001828054600181600116156101000203"
            "166002900480156101705780601f1061014557610100808354040283529160200191610170565b82019190600052"
            "6020600020905b81548152906001019060200180831161015357829003601f168201915b5050505050815600a1"
            "65627a7a72305820e0e2172f301f42d2a62397f535ccdea3c6eacaf960efb33f237b4d9563edf9980029"
        ),
        abi=MINIMAL_TOKEN_ABI,
        gas_limit=300_000,
        description="Token name/symbol holder, solc 0.4",
        default_args=["MinimalToken", "MIN"],
    ),
    "standard": ContractSpec(
        name="standard",
        bytecode=(
            "0x608060405234801561001057600080fd5b5060405162000c3838038062000c38833981016040819052620000349162"
            "0001db565b81516200004990600390602085019062000068565b5080516200005f90600490602084019062000068565b"
            "50505062000282565b828054620000769062000245565b90600052602060002090601f0160209004810192826200009a"
            "5760008555620000e5565b82601f10620000b557805160ff1916838001178555620000e5565b82800160010185558215"
            "620000e5579182015b82811115620000e5578251825591602001919060010190620000c8565b50620000f39291506200"
            "00f7565b5090565b5b80821115620000f35760008155600101620000f8565b634e487b7160e01b600052604160045260"
            "246000fd5b600082601f8301126200013657600080fd5b81516001600160401b03808211156200015357620001536200"
            "010e565b604051601f8301601f19908116603f011681019082821181831017156200017e576200017e6200010e565b81"
            "6040528381526020925086838588010111156200019b57600080fd5b600091505b83821015620001bf57858201830151"
            "81830184015290820190620001a0565b83821115620001d15760008385830101525b9695505050505050565b60008060"
            "408385031215620001ef57600080fd5b82516001600160401b03808211156200020757600080fd5b6200021586838701"
            "62000124565b935060208501519150808211156200022c57600080fd5b506200023b8582860162000124565b91505092"
            "50929050565b600181811c908216806200025a57607f821691505b602082108114156200027c57634e487b7160e01b60"
            "0052602260045260246000fd5b50919050565b6109a680620002926000396000f3fe6080604052348015610010576000"
            "80fd5b50600436106100a95760003560e01c80633950935111610071578063395093511461012957806370a082311461"
            "013c57806395d89b4114610165578063a457c2d71461016d578063a9059cbb14610180578063dd62ed3e146101935760"
            "0080fd5b806306fdde03146100ae578063095ea7b3146100cc57806318160ddd146100ef57806323b872dd1461010157"
            "8063313ce56714610114575b600080fd5b6100b66101cc565b6040516100c3919061072c565b60405180910390f35b61"
            "00df6100da36600461079d565b61025e565b60405190151581526020016100c3565b6002545b60405190815260200161"
            "00c3565b6100df61010f3660046107c7565b610278565b604051601281526020016100c3565b6100df61013736600461"
            "079d565b61029c565b6100f361014a366004610803565b6001600160a01b031660009081526020819052604090205490"
            "565b6100b66102be565b6100df61017b36600461079d565b6102cd565b6100df61018e36600461079d565b61034d565b"
            "6100f36101a1366004610825565b6001600160a01b039182166000908152600160209081526040808320939094168083"
            "52929052205490565b6060600380546101db9061085a565b80601f016020809104026020016040519081016040528092"
            "91908181526020018280546102079061085a565b80156102545780601f10610229576101008083540402835291602001"
            "91610254565b820191906000526020600020905b81548152906001019060200180831161023757829003601f16820191"
            "5b5050505050905090565b60003361026c81858561035b565b60019150505b92915050565b6000336102868582856104"
            "80565b61029185858561051d565b506001949350505050565b6000336102aa81858561050a565b6102b4858561035b56"
            "5b506001949350505050565b6060600480546101db9061085a565b600033816102db82866101a1565b90508381101561"
            "03405760405162461bcd60e51b815260206004820152602560248201527f45524332303a206465637265617365642061"
            "6c6c6f77616e63652062656c6f77604482015264207a65726f60d81b60648201526084015b60405180910390fd5b6102"
            "918286868403610480565b60003361026c818585610517565b6001600160a01b0383166103c05760405162461bcd60e5"
            "1b8152602060048201526024808201527f45524332303a20617070726f76652066726f6d20746865207a65726f206164"
            "646044820152637265737360e01b6064820152608401610337565b6001600160a01b0382166104225760405162461bcd"
            "60e51b815260206004820152602260248201527f45524332303a20617070726f766520746f20746865207a65726f2061"
            "64647265604482015261737360f01b6064820152608401610337565b6001600160a01b03838116600081815260016020"
            "90815260408083209487168084529482529182902085905590518481527f8c5be1e5ebec7d5bd14f71427d1e84f3dd03"
            "14c0f7b2291e5b200ac8c7c3b925910160405180910390a3505050565b6001600160a01b0384166104e6576040516246"
            "1bcd60e51b815260206004820152602560248201527f45524332303a2064656372656173656420616c6c6f77616e6365"
            "2062656c6f77604482015264207a65726f60d81b6064820152608401610337565b6001600160a01b0383166000908152"
            "60016020908152604080832093909416808352929052205482821101610467576001600160a01b038316600090815260"
            "016020908152604080832093909416808352929052205490036104f7565b6001600160a01b0383166000908152600160"
            "209081526040808320938616835292905220548290038290039150505b6001600160a01b038316600090815260016020"
            "908152604080832093909416835292905220829055505050565b6105178383610663565b505050565b61051783838361"
            "0663565b6001600160a01b0383166105825760405162461bcd60e51b815260206004820152602560248201527f455243"
            "32303a207472616e736665722066726f6d20746865207a65726f206164604482015264647265737360d81b6064820152"
            "608401610337565b6001600160a01b03821661059f5761059f6105ff565b6001600160a01b0383166000908152602081"
            "90526040902054818110156106225760405162461bcd60e51b815260206004820152602360248201527f45524332303a"
            "207472616e7366657220616d6f756e7420657863656564732062604482015262616c616e636560e81b60648201526084"
            "01610337565b610630828261064c565b6001600160a01b03811660009081526020819052604081208054849290610657"
            "90849061088e565b9250508190555050505050565b600080fd5b6001600160a01b038216600090815260208190526040"
            "902080548290039055600280548290039055505050565b6001600160a01b038216600090815260208190526040902080"
            "548290039055600280548290039055505050565b6001600160a01b0383166106b557610517826106c0565b505050565b"
            "600254610516908290565b6000815180845260005b818110156106ec576020818501810151868301820152016106d056"
            "5b506000602082860101526020601f19601f83011685010191505092915050565b600060208083018184528085518083"
            "52604092508286019150828160051b8701018488016000805b8481101561078e57603f198a8703018189015287820151"
            "8682018390526060828101889052885180610100850152805163ffffffff168887015260608101518787015260808101"
            "5186870152928801929092506000905b8682101561077157600181018a52825183808452870152818c01919091528583"
            "01819052869150879052845b8181101561075957878101830151878201840152810161073d565b509786019790960195"
            "94505050505281016107a8565b5081015161076c565b5096879003601f19016101208a810183015289808c5194975090"
            "8601915b878210156107d2578684830152938501936001919091019061071d565b505050602093840196919550938301"
            "929190910191016106aa565b600082601f83011261073f5750809150610744565b50919050565b600060208284031215"
            "61075d57600080fd5b81356001600160a01b038116811461077457600080fd5b60006020828403121561078557600080"
            "fd5b5035919050565b828152604060208201526000610791816040850161070f565b949350505050565b600080604083"
            "850312156107b057600080fd5b82356001600160a01b03811681146107c757600080fd5b946020939093013593505050"
            "565b6000806000606084860312156107dc57600080fd5b83356001600160a01b03811681146107f357600080fd5b9560"
            "2085013595506040909401359392505050565b60006020828403121561081557600080fd5b81356001600160a01b0381"
            "16811461082c57600080fd5b9392505050565b6000806040838503121561083857600080fd5b82356001600160a01b03"
            "8116811461084f57600080fd5b9150610828602084016107c7565b600181811c9082168061086e57607f821691505b60"
            "20821081141561088f57634e487b7160e01b600052602260045260246000fd5b50919050565b634e487b7160e01b6000"
            "52601160045260246000fd5b8181038181111561027257634e487b7160e01b600052601160045260246000fd5b63ffff"
            "ffff8416825260208201839052606060408201526000610853606083018461070f565b60208201526000610853836107"
            "0f56fea26469706673582212208fcd582d943af6789c8ba3fc97bf2a0eeaa9d1f4a5429cce3d8c5d30dbb0ef5864736f"
            "6c63430008140033"
        ),
        abi=ERC20_ABI,
        gas_limit=6_000_000,
        description="OpenZeppelin-style ERC20 with name/symbol constructor, solc 0.8.20",
        default_args=[DEFAULT_TOKEN_NAME, DEFAULT_TOKEN_SYMBOL],
    ),
    "nano": ContractSpec(
        name="nano",
        bytecode=(
            "0x6060604052341561000f57600080fd5b60405161047038038061047083398101604052808051820191906020018051"
            "820191905050816000908051906020019061004b92919061008c565b5080600190805190602001906100629291906100"
            "8c565b5050505061013189056060604052341561000f57600080fd5b6004361061003a576000357c0100000000000000"
            "000000000000000000000000000000000000000000900463ffffffff16806306fdde0314610039575b005b3415610044"
            "57600080fd5b61004c61007c565b60405180806020018281038252838181518152602001915080519060200190808383"
            "60005b8381101561008c5780820151818401525b602081019050610070565b50505050905090810190601f1680156100"
            "b95780820380516001836020036101000a031916815260200191505b509250505060405180910390f35b600080546001"
            "81600116156101000203166002900480601f016020809104026020016040519081016040528092919081815260200182"
            "80546001816001161561010002031660029004801561014f5780601f1061012457610100808354040283529160200191"
            "61014f565b820191906000526020600020905b81548152906001019060200180831161013257829003601f168201915b"
            "50505050508156fea265627a7a723058204a29cc3392acc3f4b04f364f24cfa51268b8b265eee905ad9f5c0ad5f2e08a"
            "c664736f6c634300050a0032"
        ),
        abi=MINIMAL_TOKEN_ABI,
        gas_limit=6_000_000,
        description="Name/symbol token stub, solc 0.5",
        default_args=[DEFAULT_TOKEN_NAME, DEFAULT_TOKEN_SYMBOL],
    ),
}

FALLBACK_CONTRACT_TYPE = "simplest"


def get_contract(contract_type: str) -> ContractSpec:
    """
    Look up a contract by type

    Raises:
        KeyError: Unknown type, message lists the known ones
    """
    try:
        return CONTRACTS[contract_type]
    except KeyError:
        known = ", ".join(sorted(CONTRACTS))
        raise KeyError(f"Unknown contract type '{contract_type}', known types: {known}") from None


def token_args(contract_type: str, name: Optional[str] = None, symbol: Optional[str] = None) -> List[str]:
    """
    Constructor arguments for a token contract, defaults filled in

    Raises:
        KeyError: Unknown type
        ValueError: The contract does not take a name and symbol
    """
    spec = get_contract(contract_type)
    if not spec.is_token:
        raise ValueError(f"Contract type '{contract_type}' does not take a token name and symbol")
    default_name, default_symbol = spec.default_args or [DEFAULT_TOKEN_NAME, DEFAULT_TOKEN_SYMBOL]
    return [name or default_name, symbol or default_symbol]
