"""
Fixed error messages returned by the engine for business-rule failures.

The presentation layer shows them as they are.
"""

STEP_ERROR = "Could not step a cycle forward."
RETRIEVAL_ERROR = "The retrieval node is not empty thus could not retrieve container from warehouse."
COMMISSION_ERROR = "The node after commission node is occupied thus could not move container into conveyor loop."


class LoopStateError(RuntimeError):
    """The conveyor ring reached a state that correct operation never produces"""
