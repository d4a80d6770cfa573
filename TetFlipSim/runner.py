# -- TetFLIP Simulation Runner -- #

'''
Command-line entry point for running TetFLIP liquid simulations.

Loads the simulation and scenario configuration, runs the dam break,
displays progress, and optionally exports frame data for an external
viewer.

Usage:
    python -m TetFlipSim                                  # Small dam break, 60 steps
    python -m TetFlipSim --preset standard --steps 120
    python -m TetFlipSim --config configs/damBreak_default.json
    python -m TetFlipSim --no-export                      # Skip frame export

TetFlipSim [10/18/2026]
'''

from __future__ import annotations

import argparse
import json
import logging
import time as timeModule

from tqdm import tqdm

from TetFlipSim.flip.protocols import SimulationConfig
from TetFlipSim.flip.simulator import TetFlipSimulator
from TetFlipSim.scenarios.damBreak import DamBreakConfig
from TetFlipSim.export.frameExporter import FrameExporter
from TetFlipSim.loggingConfig import setupLogging

logger = logging.getLogger(__name__)

defaultSteps = 60
defaultOutputDir = 'TetFlipSim/output'


#--------------------------------------------------------------------#
# -- CLI Argument Parser -- #
#--------------------------------------------------------------------#

def buildParser() -> argparse.ArgumentParser:
    '''Build the CLI argument parser.'''
    parser = argparse.ArgumentParser(
        description='TetFlipSim -- tetrahedral-mesh FLIP liquid simulation',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        '--config', type=str, default=None,
        help='Path to JSON configuration file',
    )
    parser.add_argument(
        '--preset', type=str, default='small',
        choices=['small', 'standard', 'fine'],
        help='Dam break preset (default: small)',
    )
    parser.add_argument(
        '--steps', type=int, default=None,
        help=f'Number of time steps (default: {defaultSteps})',
    )
    parser.add_argument(
        '--dt', type=float, default=None,
        help='Time step override',
    )
    parser.add_argument(
        '--seed', type=int, default=None,
        help='Random seed for particle placement',
    )
    parser.add_argument(
        '--no-export', action='store_true',
        help='Skip frame data export',
    )
    parser.add_argument(
        '--output-dir', type=str, default=defaultOutputDir,
        help=f'Output directory for exported frames (default: {defaultOutputDir})',
    )
    parser.add_argument(
        '--log-level', type=str, default='WARNING',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: WARNING)',
    )

    return parser


#--------------------------------------------------------------------#
# -- Runner Class -- #
#--------------------------------------------------------------------#

class TetFlipRunner:
    '''
    Runs a TetFLIP simulation and stores results.

    Handles the full pipeline: scenario setup, simulation loop
    with progress reporting, and optional frame export.
    '''

    def __init__(self) -> None:
        self._exporter: FrameExporter = FrameExporter()

    @property
    def exporter(self) -> FrameExporter:
        return self._exporter

    def runFromConfig(
        self,
        configPath: str,
        doExport: bool = True,
        exportDir: str = defaultOutputDir,
        nSteps: int | None = None,
        seed: int | None = None,
        dt: float | None = None,
    ) -> dict:
        '''
        Run a dam break from a JSON configuration file.

        The 'scenario' section configures the particle block and
        'simulation.nSteps' the run length; explicit arguments win.

        Parameters:
        -----------
        configPath : str
            Path to the JSON configuration file
        doExport : bool
            Whether to export frame data
        exportDir : str
            Output directory for frame export
        nSteps : int | None
            Step count override
        seed : int | None
            Seed override
        dt : float | None
            Time step override

        Returns:
        --------
        dict : Simulation results summary
        '''
        with open(configPath, 'r') as f:
            data = json.load(f)

        simConfig = SimulationConfig.fromDict(data)
        if dt is not None:
            simConfig.timeStep = dt
            simConfig.validate()
        scenario = DamBreakConfig.fromDict(data.get('scenario', {}))
        if seed is not None:
            scenario.seed = seed

        if nSteps is None:
            nSteps = data.get('simulation', {}).get('nSteps', defaultSteps)

        logger.info('Loaded configuration from %s', configPath)

        return self.runDamBreak(
            simConfig, scenario, nSteps=nSteps, doExport=doExport, exportDir=exportDir,
        )

    def runDamBreak(
        self,
        simConfig: SimulationConfig,
        scenario: DamBreakConfig,
        nSteps: int = defaultSteps,
        doExport: bool = True,
        exportDir: str = defaultOutputDir,
    ) -> dict:
        '''
        Run a dam break simulation.

        Parameters:
        -----------
        simConfig : SimulationConfig
            Simulation parameters
        scenario : DamBreakConfig
            Dam break configuration
        nSteps : int
            Number of time steps
        doExport : bool
            Whether to export frame data
        exportDir : str
            Output directory for frame export

        Returns:
        --------
        dict : Simulation results summary
        '''
        if nSteps < 0:
            raise ValueError(f'nSteps must be non-negative, got {nSteps}')

        print()
        print('=' * 62)
        print('  TETFLIPSIM -- TETRAHEDRAL FLIP DAM BREAK')
        print('=' * 62)
        print()

        #--------------------------------------------------------------------#
        # Scenario Setup
        #--------------------------------------------------------------------#
        print('-' * 62)
        print('  SCENARIO SETUP')
        print('-' * 62)

        simulator = TetFlipSimulator(config=simConfig, scenario=scenario)
        mesh = simulator.mesh
        res = simConfig.meshResolution

        print(f'  Domain:            {simConfig.domainMin.tolist()} -> {simConfig.domainMax.tolist()}')
        print(f'  Mesh Resolution:   {res[0]:4d} x {res[1]:4d} x {res[2]:4d}')
        print(f'  Nodes:             {mesh.nodeCount:8d}')
        print(f'  Tetrahedra:        {mesh.tetCount:8d}')
        print(f'  Particles:         {simulator.particleCount:8d}')
        print(f'  Capacity:          {simConfig.maxParticles:8d}')
        print(f'  Time Step:         {simConfig.timeStep:8.4f} s')
        print(f'  Gravity:           {simConfig.gravity:8.2f} m/s^2')
        print(f'  FLIP Ratio:        {simConfig.flipRatio:8.2f}')
        print(f'  Restitution:       {simConfig.restitution:8.2f}')
        print(f'  Steps:             {nSteps:8d}')
        print()

        # Record initial frame
        self._exporter.addFrame(simulator.currentState, simulator.particles)

        #--------------------------------------------------------------------#
        # Simulation Loop
        #--------------------------------------------------------------------#
        print('-' * 62)
        print('  RUNNING SIMULATION')
        print('-' * 62)
        print()
        print(f'  {"Time":>8}  {"Step":>8}  {"MaxVel":>8}  {"Energy":>10}  {"Iters":>6}  {"Lost":>6}')
        print(f'  {"(s)":>8}  {"":>8}  {"(m/s)":>8}  {"(J/kg)":>10}  {"":>6}  {"":>6}')
        print('  ' + '-' * 58)

        wallClockStart = timeModule.time()
        printInterval = max(1, nSteps // 20)

        for _ in tqdm(range(nSteps), desc='  Stepping', leave=False):
            state = simulator.step()
            self._exporter.addFrame(state, simulator.particles)

            if state.step % printInterval == 0 or state.step == nSteps:
                tqdm.write(
                    f'  {state.time:8.4f}  {state.step:8d}  {state.maxVelocity:8.4f}  '
                    f'{state.kineticEnergy:10.4f}  {state.pressureIterations:6d}  '
                    f'{state.lostParticles:6d}'
                )

        wallClockSeconds = timeModule.time() - wallClockStart
        finalState = simulator.currentState

        print()
        print(f'  Simulation complete.')
        print(f'  Total steps:       {finalState.step:8d}')
        print(f'  Wall-clock time:   {wallClockSeconds:8.1f} s')
        print(f'  Frames recorded:   {self._exporter.nFrames:8d}')
        print()

        #--------------------------------------------------------------------#
        # Export
        #--------------------------------------------------------------------#
        exportPath = None
        if doExport:
            print('-' * 62)
            print('  EXPORTING FRAME DATA')
            print('-' * 62)

            exportPath = self._exporter.export(
                config=simConfig,
                mesh=mesh,
                outputDir=exportDir,
                scenarioName='damBreak',
            )
            print(f'  Exported to: {exportPath}')
            print()

        #--------------------------------------------------------------------#
        # Summary
        #--------------------------------------------------------------------#
        print('=' * 62)
        print('  SIMULATION SUMMARY')
        print('=' * 62)
        print(f'  Final Time:        {finalState.time:10.4f} s')
        print(f'  Final KE:          {finalState.kineticEnergy:10.4f} J/kg')
        print(f'  Max Velocity:      {finalState.maxVelocity:10.4f} m/s')
        print(f'  Max Divergence:    {finalState.maxDivergence:10.4f}')
        print(f'  Lost Particles:    {finalState.lostParticles:10d}')
        print('=' * 62)
        print()

        return {
            'finalState': finalState,
            'wallClockSeconds': wallClockSeconds,
            'nFrames': self._exporter.nFrames,
            'exportPath': exportPath,
        }


#--------------------------------------------------------------------#
# -- CLI Entry Point -- #
#--------------------------------------------------------------------#

def main(argv: list[str] | None = None) -> dict:
    '''CLI entry point.'''
    parser = buildParser()
    args = parser.parse_args(argv)

    setupLogging(getattr(logging, args.log_level))

    runner = TetFlipRunner()

    if args.config:
        return runner.runFromConfig(
            args.config,
            doExport=not args.no_export,
            exportDir=args.output_dir,
            nSteps=args.steps,
            seed=args.seed,
            dt=args.dt,
        )

    presets = {
        'small': DamBreakConfig.small,
        'standard': DamBreakConfig.standard,
        'fine': DamBreakConfig.fine,
    }
    scenario = presets[args.preset]()
    if args.seed is not None:
        scenario.seed = args.seed

    simConfig = SimulationConfig(maxParticles=max(scenario.nParticles, 1))
    if args.dt is not None:
        simConfig.timeStep = args.dt
    simConfig.validate()

    return runner.runDamBreak(
        simConfig,
        scenario,
        nSteps=defaultSteps if args.steps is None else args.steps,
        doExport=not args.no_export,
        exportDir=args.output_dir,
    )


if __name__ == '__main__':
    main()
