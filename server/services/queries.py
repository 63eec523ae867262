"""SQL templates for the account endpoints (PostgreSQL dialect)."""

from services.binder import QueryTemplate

# Creation and deletion transactions for an account.
ACCOUNT_ACTIONS = QueryTemplate("""
    SELECT
      a.account_id,
      JSON_BUILD_OBJECT(
        'transaction_hash', cbrt.transaction_hash,
        'block_timestamp', cbrt.block_timestamp
      ) AS created,
      JSON_BUILD_OBJECT(
        'transaction_hash', dbrt.transaction_hash,
        'block_timestamp', dbrt.block_timestamp
      ) AS deleted
    FROM
      accounts a
      LEFT JOIN receipts cbr ON cbr.receipt_id = a.created_by_receipt_id
      LEFT JOIN transactions cbrt ON cbrt.transaction_hash = cbr.originated_from_transaction_hash
      LEFT JOIN receipts dbr ON dbr.receipt_id = a.deleted_by_receipt_id
      LEFT JOIN transactions dbrt ON dbrt.transaction_hash = dbr.originated_from_transaction_hash
    WHERE
      a.account_id = :account
""")

# First and most recent successful contract deployment. Ranking the whole
# history inside the database keeps the result at two rows at most; with a
# single deployment rank = 1 = total holds for one row, which is returned once.
DEPLOYMENTS = QueryTemplate("""
    SELECT
      transaction_hash,
      block_timestamp,
      receipt_predecessor_account_id
    FROM
      (
        SELECT
          t.transaction_hash AS transaction_hash,
          t.block_timestamp AS block_timestamp,
          a.receipt_predecessor_account_id AS receipt_predecessor_account_id,
          ROW_NUMBER() OVER (ORDER BY t.block_timestamp ASC) AS rank,
          COUNT(*) OVER () AS total
        FROM
          action_receipt_actions a
          JOIN receipts r ON r.receipt_id = a.receipt_id
          JOIN transactions t ON t.transaction_hash = r.originated_from_transaction_hash
        WHERE
          a.receipt_receiver_account_id = :account
          AND a.action_kind = 'DEPLOY_CONTRACT'
          AND EXISTS (
            SELECT
              1
            FROM
              execution_outcomes e
            WHERE
              e.receipt_id = a.receipt_id
              AND e.status IN ('SUCCESS_RECEIPT_ID', 'SUCCESS_VALUE')
          )
      ) tmp
    WHERE
      rank = 1
      OR rank = total
    ORDER BY
      block_timestamp ASC
""")

ACTION_BY_METHOD = QueryTemplate("""
    SELECT
      args
    FROM
      action_receipt_actions
    WHERE
      receipt_receiver_account_id = :account
      AND args ->> 'method_name' = :method
    LIMIT
      1
""")

# Net fungible balance per contract; zero and negative totals are excluded.
FT_BALANCES = QueryTemplate("""
    SELECT
      ft_holders_monthly.contract,
      SUM(ft_holders_monthly.amount) AS amount
    FROM
      ft_holders_monthly
    WHERE
      ft_holders_monthly.account = :account
    GROUP BY
      ft_holders_monthly.contract,
      ft_holders_monthly.account
    HAVING
      SUM(ft_holders_monthly.amount) > 0
""")

# Holdings without a ft_meta row are dropped by the inner lateral join.
FT_INVENTORY = QueryTemplate(f"""
    SELECT
      ft.contract,
      ft.amount,
      JSON_BUILD_OBJECT(
        'name', meta.name,
        'symbol', meta.symbol,
        'decimals', meta.decimals,
        'icon', meta.icon,
        'reference', meta.reference,
        'price', meta.price
      ) AS ft_meta
    FROM
      ({FT_BALANCES.sql}) ft
      INNER JOIN LATERAL (
        SELECT
          contract, name, symbol, decimals, icon, reference, price
        FROM
          ft_meta
        WHERE
          ft_meta.contract = ft.contract
        LIMIT
          1
      ) AS meta ON TRUE
    ORDER BY
      ft.amount DESC
""")

NFT_INVENTORY = QueryTemplate("""
    SELECT
      nft.contract,
      nft.quantity,
      JSON_BUILD_OBJECT(
        'name', meta.name,
        'symbol', meta.symbol,
        'icon', meta.icon,
        'reference', meta.reference
      ) AS nft_meta
    FROM
      (
        SELECT
          nft_holders_daily.contract,
          nft_holders_daily.quantity
        FROM
          nft_holders_daily
        WHERE
          nft_holders_daily.account = :account
      ) nft
      INNER JOIN LATERAL (
        SELECT
          contract, name, symbol, icon, reference
        FROM
          nft_meta
        WHERE
          nft_meta.contract = nft.contract
        LIMIT
          1
      ) AS meta ON TRUE
    ORDER BY
      nft.quantity DESC
""")

FT_TOKENS = QueryTemplate("""
    SELECT
      contract_account_id
    FROM
      ft_events
    WHERE
      affected_account_id = :account
    GROUP BY
      contract_account_id
""")

NFT_TOKENS = QueryTemplate("""
    SELECT
      contract_account_id
    FROM
      nft_events
    WHERE
      affected_account_id = :account
    GROUP BY
      contract_account_id
""")
