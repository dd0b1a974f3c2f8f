# W8 CPU: register file, ALU helpers, instruction decoder
