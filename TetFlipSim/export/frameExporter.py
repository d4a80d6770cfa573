# -- Simulation Frame Exporter -- #

'''
Exports TetFLIP simulation frames as JSON for visualization.

Collects particle snapshots during a run and writes them, together
with the mesh and the diagnostics history, to a single JSON file that
an external viewer can play back.

TetFlipSim [10/18/2026]
'''

from __future__ import annotations

import json
import os
from datetime import datetime

import numpy as np

from TetFlipSim.flip.protocols import SimulationConfig, SimulationState
from TetFlipSim.flip.simulator import ParticleSnapshot
from TetFlipSim.mesh.tetMesh import MeshSnapshot


class FrameExporter:
    '''
    Collects and exports simulation frame data as JSON.

    Usage:
        exporter = FrameExporter()
        # During simulation loop:
        exporter.addFrame(state, simulator.particles)
        # After simulation:
        exporter.export(config, simulator.mesh, outputDir='output')

    Output JSON format:
    {
        "meta": { "type": "tetFlip", "nFrames": 61, "created": "...", ... },
        "config": { "domainMin": [...], "timeStep": 0.016, ... },
        "mesh": { "nodes": [[x, y, z], ...], "tetrahedra": [[n0, n1, n2, n3], ...] },
        "frames": [
            {
                "time": 0.0,
                "positions": [[x0, y0, z0], ...],
                "speeds": [s0, s1, ...]
            },
            ...
        ],
        "history": {
            "times": [...],
            "kineticEnergy": [...],
            "maxVelocity": [...],
            "pressureIterations": [...]
        }
    }
    '''

    def __init__(self) -> None:
        self._frames: list[dict] = []
        self._history: dict[str, list] = {
            'times': [],
            'kineticEnergy': [],
            'maxVelocity': [],
            'pressureIterations': [],
        }

    @property
    def nFrames(self) -> int:
        '''Number of collected frames.'''
        return len(self._frames)

    def addFrame(self, state: SimulationState, particles: ParticleSnapshot) -> None:
        '''
        Record a simulation frame.

        Parameters:
        -----------
        state : SimulationState
            Diagnostics for this frame
        particles : ParticleSnapshot
            Live particle data
        '''
        speeds = np.linalg.norm(particles.velocities, axis=1)

        self._frames.append({
            'time': round(state.time, 6),
            'positions': np.round(particles.positions, 6).tolist(),
            'speeds': np.round(speeds, 6).tolist(),
        })

        self._history['times'].append(round(state.time, 6))
        self._history['kineticEnergy'].append(round(state.kineticEnergy, 6))
        self._history['maxVelocity'].append(round(state.maxVelocity, 6))
        self._history['pressureIterations'].append(state.pressureIterations)

    def export(
        self,
        config: SimulationConfig,
        mesh: MeshSnapshot,
        outputDir: str = 'TetFlipSim/output',
        scenarioName: str = 'damBreak',
    ) -> str:
        '''
        Write all collected frames to a JSON file.

        Parameters:
        -----------
        config : SimulationConfig
            Simulation configuration for metadata
        mesh : MeshSnapshot
            Mesh nodes and tetrahedra
        outputDir : str
            Output directory path
        scenarioName : str
            Scenario name for the filename

        Returns:
        --------
        str : Path to the exported JSON file
        '''
        os.makedirs(outputDir, exist_ok=True)

        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        filename = f'tetFlip_{scenarioName}_{timestamp}.json'
        filepath = os.path.join(outputDir, filename)

        output = {
            'meta': {
                'type': 'tetFlip',
                'nFrames': len(self._frames),
                'nParticles': len(self._frames[0]['positions']) if self._frames else 0,
                'nodeCount': mesh.nodeCount,
                'tetCount': mesh.tetCount,
                'created': datetime.now().isoformat(),
            },
            'config': {
                'domainMin': config.domainMin.tolist(),
                'domainMax': config.domainMax.tolist(),
                'meshResolution': list(config.meshResolution),
                'timeStep': config.timeStep,
                'gravity': config.gravity,
                'flipRatio': config.flipRatio,
            },
            'mesh': {
                'nodes': np.round(mesh.nodes, 6).tolist(),
                'tetrahedra': mesh.tetrahedra.tolist(),
            },
            'frames': self._frames,
            'history': self._history,
        }

        with open(filepath, 'w') as f:
            json.dump(output, f, indent=None, separators=(',', ':'))

        return filepath
