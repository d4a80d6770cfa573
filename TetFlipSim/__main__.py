# -- TetFlipSim Entry Point -- #

from TetFlipSim.runner import main

main()
