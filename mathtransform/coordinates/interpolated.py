# Copyright European Space Agency, 2013

"""
Datum shifts by interpolation in a grid of translation vectors.

A :class:`DatumShiftGrid` stores translation vectors at regularly spaced nodes.
The :class:`InterpolatedTransform` adds to each coordinate the translation
vector interpolated at the position of that coordinate.
"""

import logging
from math import floor, isnan

import numpy as np
from scipy.ndimage import map_coordinates

from mathtransform.errors import TransformError, MismatchedDimensionError
from mathtransform.formulas import MAXIMUM_ITERATIONS
from mathtransform.matrix import Matrix
from mathtransform.transform.base import AbstractMathTransform, InverseTransform
from mathtransform.transform.contextual import ContextualParameters, ParameterDescriptorGroup
from mathtransform.util.decorators import inherit_docs

INTERPOLATION_PARAMETERS = ParameterDescriptorGroup('Datum shift grid interpolation',
                                                    ('grid_width', 'grid_height', 'cell_precision'))

def _cellIndex(g, n):
    """
    Returns the index of the cell containing grid coordinate `g` and
    the fractional position inside that cell. Positions outside the grid
    are clamped to the nearest border.
    """
    if not g > 0: # includes NaN
        return 0, 0.0 if not isnan(g) else g
    if g >= n - 1:
        return n - 2, 1.0
    i = int(floor(g))
    return i, g - i

class DatumShiftGrid(object):
    """
    Translation vectors at the nodes of a regular two-dimensional grid.

    Subclasses provide the values of the nodes by implementing
    :meth:`getCellValue` and :attr:`translationDimensions`.
    """
    def __init__(self, coordinateToGrid, gridSize, cellPrecision):
        """
        :param coordinateToGrid: linear transform from the source coordinates
            (first two dimensions) to fractional grid indices
        :param gridSize: (width, height) number of nodes, both at least 2
        :param float cellPrecision: desired precision of inverse transforms, in cell units
        """
        if coordinateToGrid.sourceDim != 2 or coordinateToGrid.targetDim != 2:
            raise MismatchedDimensionError('The conversion to grid indices must be two-dimensional.',
                                           2, coordinateToGrid.sourceDim)
        width, height = gridSize
        if width < 2 or height < 2:
            raise ValueError('A grid needs at least 2x2 nodes, got {}x{}.'.format(width, height))
        if not cellPrecision > 0:
            raise ValueError('Illegal cell precision: {}'.format(cellPrecision))
        self._coordinateToGrid = coordinateToGrid
        self._gridSize = (int(width), int(height))
        self._cellPrecision = float(cellPrecision)

    @property
    def coordinateToGrid(self):
        return self._coordinateToGrid

    @property
    def gridSize(self):
        return self._gridSize

    @property
    def cellPrecision(self):
        return self._cellPrecision

    @property
    def translationDimensions(self):
        raise NotImplementedError

    def getCellValue(self, dim, gridX, gridY):
        """
        Returns the translation of dimension `dim` at the given node.

        :param int gridX: column index
        :param int gridY: row index
        """
        raise NotImplementedError

    def _cell(self, gridX, gridY):
        ix, fx = _cellIndex(gridX, self._gridSize[0])
        iy, fy = _cellIndex(gridY, self._gridSize[1])
        values = np.empty((self.translationDimensions, 4))
        for dim in range(self.translationDimensions):
            values[dim] = (self.getCellValue(dim, ix, iy),
                           self.getCellValue(dim, ix + 1, iy),
                           self.getCellValue(dim, ix, iy + 1),
                           self.getCellValue(dim, ix + 1, iy + 1))
        return values, fx, fy

    def interpolateInCell(self, gridX, gridY):
        """
        Bilinear interpolation of the translation vector at the given
        fractional grid indices.

        :rtype: ndarray of shape (translationDimensions,)
        """
        v, fx, fy = self._cell(gridX, gridY)
        return ((1 - fy) * ((1 - fx)*v[:, 0] + fx*v[:, 1]) +
                     fy  * ((1 - fx)*v[:, 2] + fx*v[:, 3]))

    def derivativeInCell(self, gridX, gridY):
        """
        Derivative of :meth:`interpolateInCell` with respect to the grid indices.
        The derivative is zero along an axis where the position is outside the grid.

        :rtype: ndarray of shape (translationDimensions, 2)
        """
        v, fx, fy = self._cell(gridX, gridY)
        width, height = self._gridSize
        d = np.empty((self.translationDimensions, 2))
        d[:, 0] = (1 - fy)*(v[:, 1] - v[:, 0]) + fy*(v[:, 3] - v[:, 2])
        d[:, 1] = (1 - fx)*(v[:, 2] - v[:, 0]) + fx*(v[:, 3] - v[:, 1])
        if not 0 <= gridX <= width - 1:
            d[:, 0] = 0
        if not 0 <= gridY <= height - 1:
            d[:, 1] = 0
        return d

    def interpolateInCells(self, gridX, gridY):
        """
        Vectorized :meth:`interpolateInCell`.

        :param gridX, gridY: arrays of shape (n,)
        :rtype: ndarray of shape (n, translationDimensions)
        """
        out = np.empty((len(gridX), self.translationDimensions))
        for i, (gx, gy) in enumerate(zip(gridX, gridY)):
            out[i] = self.interpolateInCell(gx, gy)
        return out

@inherit_docs
class ArrayDatumShiftGrid(DatumShiftGrid):
    """
    A grid with all translation vectors in memory.
    """
    def __init__(self, coordinateToGrid, offsets, cellPrecision):
        """
        :param offsets: array of shape (translationDimensions, height, width)
        """
        offsets = np.array(offsets, dtype=float)
        if offsets.ndim != 3:
            raise ValueError('Offsets must have shape (dimensions, height, width), got {}.'.format(offsets.shape))
        if offsets.shape[0] < 2:
            raise ValueError('At least two translation dimensions are required.')
        super(ArrayDatumShiftGrid, self).__init__(coordinateToGrid, (offsets.shape[2], offsets.shape[1]),
                                                  cellPrecision)
        offsets.flags.writeable = False
        self._offsets = offsets

    @property
    def translationDimensions(self):
        return self._offsets.shape[0]

    @property
    def offsets(self):
        return self._offsets

    def getCellValue(self, dim, gridX, gridY):
        return self._offsets[dim, gridY, gridX]

    def interpolateInCells(self, gridX, gridY):
        coords = np.vstack((gridY, gridX))
        out = np.empty((len(gridX), self.translationDimensions))
        for dim in range(self.translationDimensions):
            out[:, dim] = map_coordinates(self._offsets[dim], coords, order=1, mode='nearest')
        return out

    def __eq__(self, other):
        if not isinstance(other, ArrayDatumShiftGrid):
            return NotImplemented
        return (self.coordinateToGrid == other.coordinateToGrid and
                self.cellPrecision == other.cellPrecision and
                np.array_equal(self._offsets, other._offsets))

    def __ne__(self, other):
        eq = self.__eq__(other)
        return eq if eq is NotImplemented else not eq

    def __hash__(self):
        return hash((self.coordinateToGrid, self.gridSize, self.cellPrecision))

@inherit_docs
class InterpolatedTransform(AbstractMathTransform):
    """
    Adds to each coordinate the translation vector interpolated in a grid at the
    position given by the first two coordinates. The number of dimensions is the
    number of translation dimensions of the grid.
    """
    def __init__(self, grid, context=None):
        self._grid = grid
        self._context = context
        self._rebuildDerivedState()

    def _rebuildDerivedState(self):
        nan = float('nan')
        self._scaleX = self._offsetX = self._scaleY = self._offsetY = nan
        m = self._grid.coordinateToGrid.getMatrix()
        if (m.numRow == 3 and m.numCol == 3 and m.isAffine() and
                m.getElement(0, 1) == 0 and m.getElement(1, 0) == 0):
            self._scaleX = m.getElement(0, 0)
            self._offsetX = m.getElement(0, 2)
            self._scaleY = m.getElement(1, 1)
            self._offsetY = m.getElement(1, 2)

    @staticmethod
    def createGeodeticTransformation(factory, grid):
        """
        Returns the transform applying the translations of the given grid.
        """
        context = ContextualParameters(INTERPOLATION_PARAMETERS, grid.translationDimensions,
                                       grid.translationDimensions)
        context.setParameter('grid_width', grid.gridSize[0])
        context.setParameter('grid_height', grid.gridSize[1])
        context.setParameter('cell_precision', grid.cellPrecision)
        return context.completeTransform(factory, InterpolatedTransform(grid, context))

    @property
    def sourceDim(self):
        return self._grid.translationDimensions

    @property
    def targetDim(self):
        return self._grid.translationDimensions

    @property
    def grid(self):
        return self._grid

    def getContextualParameters(self):
        return self._context

    def _toGrid(self, x, y):
        if isnan(self._scaleX):
            return self._grid.coordinateToGrid.transform([x, y])
        return x*self._scaleX + self._offsetX, y*self._scaleY + self._offsetY

    def _gridJacobian(self, x, y):
        """
        Derivative of the conversion to grid indices at source point (x, y).
        """
        if isnan(self._scaleX):
            return self._grid.coordinateToGrid.derivative([x, y]).toArray()
        return np.diag([self._scaleX, self._scaleY])

    def _jacobian(self, x, y, gx, gy):
        jacobian = np.identity(self.sourceDim)
        jacobian[:, :2] += self._grid.derivativeInCell(gx, gy).dot(self._gridJacobian(x, y))
        return jacobian

    def _transform(self, srcPts, srcOff, dstPts, dstOff, derivate):
        point = np.array(srcPts[srcOff:srcOff + self.sourceDim], dtype=float)
        gx, gy = self._toGrid(point[0], point[1])
        if dstPts is not None:
            dstPts[dstOff:dstOff + self.targetDim] = point + self._grid.interpolateInCell(gx, gy)
        if derivate:
            return Matrix.fromArray(self._jacobian(point[0], point[1], gx, gy))
        return None

    def _transformArray(self, coords):
        if isnan(self._scaleX):
            g = self._grid.coordinateToGrid.transformArray(coords[:, :2])
            gx, gy = g[:, 0], g[:, 1]
        else:
            gx = coords[:, 0]*self._scaleX + self._offsetX
            gy = coords[:, 1]*self._scaleY + self._offsetY
        return coords + self._grid.interpolateInCells(gx, gy)

    def _createInverse(self):
        return _InterpolatedInverse(self)

    def _equalsSameType(self, other, mode):
        return self._grid == other._grid

    def _hashKey(self):
        return hash(self._grid)

    def __repr__(self):
        return 'InterpolatedTransform(gridSize={}, dimensions={})'.format(self._grid.gridSize, self.sourceDim)

class _InterpolatedInverse(InverseTransform):
    """
    Inverse computed by Newton iterations, stopping when the correction is
    smaller than the cell precision of the grid.
    """
    def _solve(self, target):
        forward = self._forward
        grid = forward._grid
        x = target.copy()
        for _ in range(MAXIMUM_ITERATIONS):
            gx, gy = forward._toGrid(x[0], x[1])
            residual = x + grid.interpolateInCell(gx, gy) - target
            jacobian = forward._jacobian(x[0], x[1], gx, gy)
            step = np.linalg.solve(jacobian[:2, :2], residual[:2])
            toGrid = forward._gridJacobian(x[0], x[1])
            x[:2] -= step
            if np.all(np.abs(toGrid.dot(step)) <= grid.cellPrecision):
                gx, gy = forward._toGrid(x[0], x[1])
                x[2:] = target[2:] - grid.interpolateInCell(gx, gy)[2:]
                return x, gx, gy
        logging.warning('No convergence after ' + str(MAXIMUM_ITERATIONS) +
                        ' iterations when inverting the grid interpolation at ' + str(list(target)))
        raise TransformError('No convergence of the inverse grid interpolation at {}.'.format(list(target)))

    def _transform(self, srcPts, srcOff, dstPts, dstOff, derivate):
        target = np.array(srcPts[srcOff:srcOff + self.sourceDim], dtype=float)
        x, gx, gy = self._solve(target)
        if dstPts is not None:
            dstPts[dstOff:dstOff + self.targetDim] = x
        if derivate:
            return Matrix.fromArray(np.linalg.inv(self._forward._jacobian(x[0], x[1], gx, gy)))
        return None
