# constants/event_transfer_signature.py

# ERC-20 Transfer(address indexed from, address indexed to, uint256 value)
# This is the SHA3 hash of the event signature "Transfer(address,address,uint256)"
TRANSFER_EVENT_SIGNATURE = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"

# [signature, from, to]. ERC-721 shares the signature but indexes tokenId as a 4th topic.
ERC20_TRANSFER_TOPIC_COUNT = 3
