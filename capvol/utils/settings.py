# -*- coding: utf-8 -*-

# Volatility bounds used by the implied volatility solvers
VOL_SLN_BOUNDS = (0.1 / 100, 1000 / 100)  # 0.1% to 1000% (0.001 to 10)
VOL_N_BOUNDS = (0.01 / 100, 100 / 100)  # 0.01% to 100% (0.0001 to 1)

# Floor applied to the nodes of a non-parametric caplet surface during calibration
VOL_SLN_FLOOR = 1e-4
VOL_N_FLOOR = 1e-6

# Quote error applied when RawOptionData carries no error matrix.
# Residuals are relative to the market price, (model - market) / (market * error).
DEFAULT_QUOTE_ERROR = 1.0

# Least-squares defaults, passed to scipy.optimize.least_squares
LS_FTOL = 1e-12 # relative decrease of the objective
LS_XTOL = 1e-12 # relative step size
LS_GTOL = 1e-12
LS_MAX_ITERATIONS = 500 # residual evaluations
FINITE_DIFFERENCE_STEP = 1e-6
# A fit that stopped on ftol or xtol must have first-order optimality below this, relative to max(1, objective)
LS_STATIONARITY_TOL = 1e-3

# SABR
SABR_INITIAL_BETA = 0.5
SABR_INITIAL_RHO = 0.0
SABR_INITIAL_NU = 0.3
SABR_RHO_LIMIT = 0.999 # |rho| is kept strictly inside (-1, 1)

# Strike/forward at-the-money tolerance in the Hagan formula
SABR_ATM_TOL = 1e-6

# Vega is quoted per 1% volatility move
VEGA_NORMALISATION = 0.01
