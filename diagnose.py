
import sys
import asyncio

try:
    from fourtrade.core.abi import validate_abi
    from fourtrade.core.use_cases.trader import Trader
    from fourtrade.infrastructure.gateways.local_mock import LocalMockChain
    from fourtrade.api.main import app
    print("✅ All imports successful.")
except Exception as e:
    print(f"❌ Import failed: {e}")
    sys.exit(1)

TOKEN = "0x1234567890123456789012345678901234567890"


# Dry run of the full trade lifecycle against the in-memory chain
async def dry_run():
    try:
        validate_abi()
        chain = LocalMockChain()
        chain.list_token(TOKEN)
        trader = Trader(chain, chain)

        quote = await trader.preview_buy(TOKEN, 10**18, 1)
        print(f"✅ Quote: {quote.price.token_amount} tokens for 1 BNB, min accepted {quote.limit}")

        bought = await trader.buy(TOKEN, 10**18, 1)
        sold = await trader.sell(TOKEN, bought.amount, 1)
        approval = await trader.approve_token(TOKEN)

        if len(chain.submitted) == 3:
            print(f"✅ Buy {bought.tx_hash}, sell {sold.tx_hash}, approve {approval} submitted.")
        else:
            print(f"❌ Expected 3 submissions, got {len(chain.submitted)}")
    except Exception as e:
        print(f"❌ Dry run raised exception: {e}")

if __name__ == "__main__":
    asyncio.run(dry_run())
