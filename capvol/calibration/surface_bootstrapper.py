# -*- coding: utf-8 -*-
import time
from typing import List
import numpy as np
import pandas as pd
from capvol.calibration.base import CapletVolatilityCalibrator
from capvol.calibration.definitions import SurfaceBootstrapDefinition
from capvol.calibration.market_instruments import MarketCapFloor
from capvol.enums import ValueType
from capvol.market_data.raw_option_data import RawOptionData
from capvol.market_data.surface_metadata import SurfaceMetadata, SurfaceNodeMetadata
from capvol.term_structures.caplet_volatilities import InterpolatedCapletVolatilities
from capvol.term_structures.grid_surface import InterpolatedNodalSurface
from capvol.utils.logging import get_logger
from capvol.utils.settings import VOL_SLN_FLOOR, VOL_N_FLOOR

logger = get_logger(__name__)


class SurfaceBootstrapper(CapletVolatilityCalibrator):
    """
    Bootstraps a nodal caplet volatility surface one expiry row at a time.

    Each market cap/floor puts a node at (its last caplet expiry, its strike). Rows are solved in expiry
    order with the earlier rows frozen. The expiry interpolation is local, so a row's instruments do not
    depend on the nodes of later rows.
    """

    def _calibrate(self,
                   definition: SurfaceBootstrapDefinition,
                   valuation_date: pd.Timestamp,
                   raw_data: RawOptionData,
                   rates_provider,
                   metadata: SurfaceMetadata,
                   rows: List[List[MarketCapFloor]]) -> InterpolatedCapletVolatilities:

        value_type = metadata.value_type
        shift_curve = self.model_shift_curve(definition, raw_data, value_type)
        floor = VOL_SLN_FLOOR if value_type == ValueType.BLACK_VOLATILITY else VOL_N_FLOOR

        # One node per instrument at (last caplet expiry, strike)
        node_x, node_y, seeds, node_metadata, row_nodes = [], [], [], [], []
        seen = set()
        kept_rows = []
        for row in rows:
            kept, nodes = [], []
            for inst in row:
                node = SurfaceNodeMetadata(expiry=inst.last_expiry, strike=inst.strike,
                                           label=f"{inst.tenor} x {inst.quoted_strike}")
                if node.identifier in seen:
                    logger.warning("Duplicated surface node %s, instrument %s x %s dropped",
                                   node.label, inst.tenor, inst.quoted_strike)
                    continue
                seen.add(node.identifier)
                node_x.append(inst.last_expiry)
                node_y.append(inst.strike)
                seeds.append(max(inst.quote, floor))
                node_metadata.append(node)
                nodes.append(node)
                kept.append(inst)
            if kept:
                row_nodes.append(nodes)
                kept_rows.append(kept)

        surface = InterpolatedNodalSurface(name=definition.name, x=node_x, y=node_y, z=seeds,
                                           interpolator=definition.interpolator,
                                           parameter_metadata=tuple(node_metadata))
        volatilities = InterpolatedCapletVolatilities(name=definition.name,
                                                      index=definition.index,
                                                      valuation_date=valuation_date,
                                                      day_count_basis=definition.day_count_basis,
                                                      surface=surface,
                                                      value_type=value_type,
                                                      shift_curve=shift_curve)

        # Parameter positions of each row in the sorted surface
        position = {node.identifier: k for k, node in enumerate(surface.parameter_metadata)}
        blocks = [np.array([position[node.identifier] for node in nodes]) for nodes in row_nodes]

        solver = self.solver_settings.solver()
        z = np.array(surface.z)
        for row, block in zip(kept_rows, blocks):
            t1 = time.time()

            def residuals(params, row=row, block=block):
                z_trial = z.copy()
                z_trial[block] = params
                return self.weighted_residuals(row, volatilities.with_parameters(z_trial))

            def jacobian(params, row=row, block=block):
                z_trial = z.copy()
                z_trial[block] = params
                return self.weighted_residual_jacobian(row, volatilities.with_parameters(z_trial))[:, block]

            result = solver.solve(residuals, z[block], jacobian_function=jacobian,
                                  lower_bounds=np.full(len(block), floor))
            z[block] = result.x
            logger.debug("Expiry %s: %s nodes, chi-square %.6e, %s evaluations, %.3f sec",
                         row[0].tenor, len(block), result.chi_square, result.iterations, time.time() - t1)

        return volatilities.with_parameters(z)
