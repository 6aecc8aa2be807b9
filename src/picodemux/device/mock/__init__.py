from .mock_digitizer import MockMuxDigitizer, synth_multiplexed_block

__all__ = ["MockMuxDigitizer", "synth_multiplexed_block"]
