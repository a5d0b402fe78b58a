#!/usr/bin/env python3
"""外汇对冲组合估值演示"""

import sys
sys.path.insert(0, '.')

from datetime import datetime, timedelta, timezone

from marketdata.snapshot import MarketDataSnapshot
from utils.logging_config import setup_logging
from valuation.risk.portfolio import value_portfolio

setup_logging(level="WARNING", to_file=False)

as_of = datetime.now(timezone.utc)


def maturity(days: int) -> str:
    return (as_of + timedelta(days=days)).date().isoformat()


print('=' * 60)
print('FX 对冲组合估值演示')
print('=' * 60)

print('\n1. 市场数据...')
market_data = MarketDataSnapshot.from_mapping({
    'spotRates': {'EURUSD': 1.10, 'EURGBP': 0.85, 'EURJPY': 160.0},
    'volatilities': {'EURUSD': 0.12, 'EURGBP': 0.10, 'EURJPY': 0.15},
    'riskFreeRate': 0.02,
})
for pair, spot in market_data.spot_rates.items():
    print(f'   {pair}: {spot:.4f}  vol={market_data.volatility(pair):.0%}')

print('\n2. 对冲工具...')
book = [
    {'id': 'FWD-1', 'type': 'Forward', 'currency': 'USD', 'amount': -500_000,
     'rate': 1.05, 'strikeType': 'absolute', 'maturity': maturity(90)},
    {'id': 'CALL-1', 'type': 'Call', 'currency': 'USD', 'amount': 1_000_000,
     'rate': 100, 'strikeType': 'percentage', 'maturity': maturity(365), 'premium': 20_000},
    {'id': 'PUT-1', 'type': 'Put', 'currency': 'GBP', 'amount': 750_000,
     'rate': 0.84, 'maturity': maturity(180), 'premium': 8_000},
    {'id': 'KO-1', 'type': 'Call Knock-Out', 'currency': 'USD', 'amount': 500_000,
     'rate': 1.12, 'barrier': 1.05, 'maturity': maturity(180), 'premium': 5_000},
    {'id': 'OT-1', 'type': 'One Touch', 'currency': 'JPY', 'amount': 100_000,
     'barrier': 105, 'barrierType': 'percentage', 'maturity': maturity(120), 'premium': 30_000},
    {'id': 'RB-1', 'type': 'Range Binary (beta)', 'currency': 'USD', 'amount': 200_000,
     'lowerBarrier': 1.05, 'upperBarrier': 1.15, 'maturity': maturity(60), 'premium': 60_000},
    {'id': 'BAD-1', 'type': 'Variance Swap', 'currency': 'USD', 'amount': 100_000,
     'maturity': maturity(30)},
]
print(f'   {len(book)} 个头寸')

print('\n3. 批量估值...')
portfolio = value_portfolio(book, market_data, as_of=as_of)

frame = portfolio.to_frame()
print(frame[['id', 'type', 'price', 'mtm', 'method', 'delta', 'error']].to_string(index=False))

print('\n' + '=' * 60)
print('组合指标')
print('=' * 60)
summary = portfolio.summary(total_exposure=3_000_000)
print(f"\n未实现盈亏 (MTM):  {summary['total_mtm']:+,.2f} EUR")
print(f"名义本金合计:      {summary['total_notional']:,.0f}")
print(f"平均期限:          {summary['average_maturity_days']:.1f} 天")
print(f"对冲比率:          {summary['hedge_ratio']:.1f}%")
print(f"估值失败:          {summary['failed']} 个")
for currency, greeks in portfolio.greeks_by_currency().items():
    print(f"{currency} Greeks:  delta={greeks.delta:+,.0f} vega={greeks.vega:+,.0f} theta={greeks.theta:+,.2f}")

print('\n' + '=' * 60)
print('演示完成！')
print('=' * 60)
