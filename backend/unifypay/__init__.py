"""UnifyPay: transactions, deposits and the balances derived from them."""
