"""Side-by-side comparison of CoT, ReAct, ReWOO and Plan-Execute reasoning."""
